from typing import Any, Dict, List

import httplib2
import pytest
from googleapiclient.errors import HttpError

import ar_reports.sheets_client as sc


class FakeRequest:
    def __init__(self, response: Dict[str, Any] | None = None, error: Exception | None = None):
        self._response = response or {}
        self._error = error

    def execute(self):
        if self._error:
            raise self._error
        return self._response


class FakeValuesResource:
    def __init__(self, service: "FakeSheetsService"):
        self._service = service

    def get(self, spreadsheetId: str, range: str):
        self._service.calls.append(("get", range))
        if not self._service.get_responses:
            raise AssertionError("No fake response configured")
        response = self._service.get_responses.pop(0)
        if isinstance(response, Exception):
            return FakeRequest(error=response)
        return FakeRequest(response)


class FakeSpreadsheetsResource:
    def __init__(self, service: "FakeSheetsService"):
        self._values = FakeValuesResource(service)

    def values(self):
        return self._values


class FakeSheetsService:
    def __init__(self):
        self.calls: List = []
        self.get_responses: List = []
        self._spreadsheets = FakeSpreadsheetsResource(self)

    def spreadsheets(self):
        return self._spreadsheets


class FakeCredentials:
    scopes = None

    @classmethod
    def from_service_account_file(cls, path, scopes=None):
        credentials = cls()
        credentials.scopes = scopes
        return credentials


@pytest.fixture(autouse=True)
def patch_build(monkeypatch):
    service = FakeSheetsService()

    def fake_build(*args, **kwargs):
        return service

    monkeypatch.setattr(sc, "build", fake_build)
    monkeypatch.setattr(sc, "Credentials", FakeCredentials)
    return service


def _client():
    return sc.SheetsClient(spreadsheet_id="sheet", credentials_path="creds.json")


def test_fetch_ledger_rows_skips_header_and_blank_customers(patch_build):
    patch_build.get_responses = [
        {
            "values": [
                ["DATE", "DUE DATE", "NUMBER", "CUSTOMER NAME", "SALESREP", "DEBIT", "CREDIT", "MATCHING"],
                ["2024-01-01", "2024-01-31", "SAL1", "Acme", "Omar", "1,000", "", "M1"],
                ["2024-01-05", "", "BNK1", "Acme", "Omar", "", "400", "M1"],
                ["2024-01-06", "", "SAL2", ""],
            ]
        }
    ]
    rows = _client().fetch_ledger_rows()
    assert patch_build.calls == [("get", "Invoices!A:H")]
    assert [row.number for row in rows] == ["SAL1", "BNK1"]
    assert rows[0].debit == pytest.approx(1000)
    assert rows[1].credit == pytest.approx(400)
    assert rows[0].due_date == "2024-01-31"
    assert rows[1].matching == "M1"


def test_fetch_closed_customers_normalises_names(patch_build):
    patch_build.get_responses = [
        {"values": [["ID", "CUSTOMER NAME"], ["1", "  ACME   Trading "], ["2"], ["3", ""]]},
    ]
    assert _client().fetch_closed_customers() == {"acme trading"}


def test_fetch_closed_customers_returns_empty_on_api_error(patch_build):
    error = HttpError(httplib2.Response({"status": 400}), b"Unable to parse range")
    patch_build.get_responses = [error]
    assert _client().fetch_closed_customers() == set()


def test_fetch_users_builds_contexts(patch_build):
    patch_build.get_responses = [
        {"values": [["NAME", "ROLE", "SALES REPS"], ["Boss", "admin"], ["Omar", "rep", "Omar, Sara"], [""]]},
    ]
    users = _client().fetch_users()
    assert [user.name for user in users] == ["Boss", "Omar"]
    assert users[0].is_admin is True
    assert users[1].sales_reps == frozenset({"Omar", "Sara"})


def test_client_requests_readonly_scope(monkeypatch):
    seen = {}

    def fake_build(*args, **kwargs):
        seen.update(kwargs)
        return FakeSheetsService()

    monkeypatch.setattr(sc, "build", fake_build)
    _client()
    assert seen["credentials"].scopes == sc.READONLY_SCOPES
