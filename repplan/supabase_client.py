"""
Supabase (PostgREST) repository
Reads and writes plans, clients, regions and visit reports on the hosted
database through its REST interface.

Tables:  weekly_plans (rep_id unique, plan jsonb, status, version),
         doctors, pharmacies, regions, system_settings (single row id=1)
RPC:     get_visit_reports(p_rep_id)

Documentation: https://postgrest.org/en/stable/references/api.html
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

import requests

from repplan.errors import PersistenceFailure, PlanConflict
from repplan.models import (
    Client,
    ClientKind,
    PlanMap,
    PlanStatus,
    Region,
    SystemSettings,
    VisitRecord,
    WeeklyPlan,
    client_from_record,
)
from repplan.store import PlanRepository

logger = logging.getLogger(__name__)


class SupabaseClient(PlanRepository):
    """
    PlanRepository over the hosted PostgREST API
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            api_key: anon or service key
            timeout: Per-request timeout (seconds)
            session: Pre-configured session (tests inject a mock)
        """
        self.base_url = url.rstrip('/') + "/rest/v1"
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': api_key,
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
        })

    def _request(
        self,
        method: str,
        path: str,
        context: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        headers = {'Prefer': prefer} if prefer else None
        try:
            response = self.session.request(
                method,
                f"{self.base_url}/{path}",
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json() if response.content else None

        except requests.exceptions.RequestException as e:
            logger.error(f"Error in {context}: {e}")
            raise PersistenceFailure(f"{context} failed: {e}") from e

    # -----------------------------------------------------------------------
    # Plans
    # -----------------------------------------------------------------------

    def _fetch_plan_row(self, rep_id: str) -> Optional[Dict[str, Any]]:
        rows = self._request(
            'GET', 'weekly_plans', 'fetch_plan',
            params={'select': '*', 'rep_id': f'eq.{rep_id}'},
        )
        return rows[0] if rows else None

    def _plan_from_row(self, row: Optional[Dict[str, Any]], context: str) -> WeeklyPlan:
        try:
            return WeeklyPlan.from_record(row)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed weekly_plans row in {context}: {e}")
            raise PersistenceFailure(f"{context}: malformed plan row: {e}") from e

    def fetch_plan(self, rep_id: str) -> WeeklyPlan:
        """
        Retrieve a representative's plan

        Returns:
            Stored plan, or an empty draft when none exists
        """
        return self._plan_from_row(self._fetch_plan_row(rep_id), 'fetch_plan')

    def persist_plan(
        self,
        rep_id: str,
        snapshot: PlanMap,
        expected_version: Optional[int] = None,
    ) -> WeeklyPlan:
        """
        Insert or update plan content with status pending

        Args:
            rep_id: Owning representative
            snapshot: day index → assignment
            expected_version: Version the caller edited; None = whatever is
                stored now (the version still advances)
        """
        body = WeeklyPlan(plan=dict(snapshot), status=PlanStatus.PENDING).to_record()
        body['rep_id'] = rep_id

        logger.info(f"Saving plan for rep {rep_id}")
        current = self._fetch_plan_row(rep_id)
        row = self._conditional_write(rep_id, body, current, expected_version, 'persist_plan')
        return self._plan_from_row(row, 'persist_plan')

    def set_plan_status(
        self,
        rep_id: str,
        status: PlanStatus,
        expected_version: Optional[int] = None,
    ) -> WeeklyPlan:
        """Update status only"""
        status = PlanStatus(status)
        logger.info(f"Setting plan status for rep {rep_id} → {status.value}")

        current = self._fetch_plan_row(rep_id)
        if current is None:
            raise PersistenceFailure(f"No plan stored for rep {rep_id}")
        row = self._conditional_write(rep_id, {'status': status.value}, current,
                                      expected_version, 'set_plan_status')
        return self._plan_from_row(row, 'set_plan_status')

    def _conditional_write(
        self,
        rep_id: str,
        body: Dict[str, Any],
        current: Optional[Dict[str, Any]],
        expected_version: Optional[int],
        context: str,
    ) -> Dict[str, Any]:
        """
        Write `body` with version = expected + 1, only if the row still
        carries the expected version.  A missing row is inserted (v0 → v1).
        """
        stored_version = current.get('version') if current else None
        actual = int(stored_version or 0)
        if expected_version is None:
            expected_version = actual
        if expected_version != actual:
            raise PlanConflict(rep_id, expected_version, actual)

        body = dict(body, version=expected_version + 1)
        if current is None:
            rows = self._request('POST', 'weekly_plans', context,
                                 json=body, prefer='return=representation')
        else:
            # rows written before versioning carry NULL
            version_filter = f'eq.{expected_version}' if stored_version is not None else 'is.null'
            rows = self._request(
                'PATCH', 'weekly_plans', context,
                params={'rep_id': f'eq.{rep_id}', 'version': version_filter},
                json=body,
                prefer='return=representation',
            )

        if not rows:
            latest = self._fetch_plan_row(rep_id)
            raise PlanConflict(rep_id, expected_version,
                               int(latest.get('version') or 0) if latest else None)
        return rows[0]

    def fetch_all_plans(self) -> Dict[str, WeeklyPlan]:
        rows = self._request('GET', 'weekly_plans', 'fetch_all_plans', params={'select': '*'})
        plans = {str(r['rep_id']): self._plan_from_row(r, 'fetch_all_plans') for r in rows or []}
        logger.info(f"Retrieved {len(plans)} plans")
        return plans

    # -----------------------------------------------------------------------
    # Reference data
    # -----------------------------------------------------------------------

    def fetch_clients_for_rep(self, rep_id: str) -> List[Client]:
        clients: List[Client] = []
        for table, kind in (('doctors', ClientKind.DOCTOR), ('pharmacies', ClientKind.PHARMACY)):
            rows = self._request(
                'GET', table, f'fetch_{table}',
                params={'select': '*', 'rep_id': f'eq.{rep_id}'},
            )
            clients.extend(client_from_record(r, kind) for r in rows or [])
        logger.info(f"Retrieved {len(clients)} clients for rep {rep_id}")
        return clients

    def fetch_regions(self) -> List[Region]:
        rows = self._request('GET', 'regions', 'fetch_regions', params={'select': '*'})
        return [Region(id=int(r['id']), name=str(r['name'])) for r in rows or []]

    def fetch_visit_history(self, rep_id: Optional[str] = None) -> List[VisitRecord]:
        """
        Retrieve visit reports through the get_visit_reports RPC

        Args:
            rep_id: Restrict to one representative; None = all
        """
        payload = {'p_rep_id': rep_id} if rep_id else {}
        rows = self._request('POST', 'rpc/get_visit_reports', 'fetch_visit_history', json=payload)

        visits = []
        for row in rows or []:
            visit = VisitRecord.from_report(row)
            if rep_id and visit.rep_id is None:
                visit = replace(visit, rep_id=rep_id)
            visits.append(visit)
        logger.info(f"Retrieved {len(visits)} visit reports")
        return visits

    def fetch_system_settings(self) -> SystemSettings:
        rows = self._request('GET', 'system_settings', 'fetch_system_settings',
                             params={'select': '*', 'id': 'eq.1'})
        return SystemSettings.from_record(rows[0] if rows else None)
