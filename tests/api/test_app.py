import csv
import io
from datetime import date

import pytest
from fastapi.testclient import TestClient

from conftest import FakeResponse, esearch_payload, esummary_payload
from src.api import create_app
from src.assistant import CHAT_FALLBACK, StudyAssistant
from src.ingestion.errors import ModelAdapterError
from src.search import StudySearchService
from src.utils.config import Settings

GDS_RECORDS = {
    "200001": {"accession": "GSE1", "title": "Human liver RNA-seq", "taxon": "Homo sapiens", "pdat": "2019/05/01", "n_samples": 12},
    "200002": {"accession": "GSE2", "title": 'Foo, "bar"', "taxon": "Mus musculus", "pdat": "2023/05/01", "n_samples": 3},
}


class StubModel:
    model_name = "gemini-test"

    def __init__(self, output="Model answer", fail=False):
        self.output = output
        self.fail = fail
        self.prompts = []

    def generate(self, prompt, *, json_mode=False):
        self.prompts.append(prompt)
        if self.fail:
            raise ModelAdapterError("unavailable")
        return self.output


def _handler(url, params):
    if params["db"] == "sra":
        if url.endswith("esearch.fcgi"):
            return FakeResponse(200, payload=esearch_payload([]))
        return FakeResponse(500)
    if url.endswith("esearch.fcgi"):
        term = params["term"]
        if term == "GSE404":
            return FakeResponse(200, payload=esearch_payload([]))
        if term in ("GSE1", "GSE2"):
            return FakeResponse(200, payload=esearch_payload(["20000" + term[-1]]))
        return FakeResponse(200, payload=esearch_payload(list(GDS_RECORDS), count=2))
    ids = params["id"].split(",")
    return FakeResponse(200, payload=esummary_payload({uid: GDS_RECORDS[uid] for uid in ids}))


@pytest.fixture
def api(make_client):
    client = make_client(_handler, retry_delay_s=0)
    model = StubModel()
    app = create_app(
        Settings(gemini_model="gemini-test"),
        search_service=StudySearchService(client),
        assistant=StudyAssistant(model),
    )
    test_client = TestClient(app)
    test_client.upstream = client
    test_client.model = model
    return test_client


def test_health(api):
    body = api.get("/").json()

    assert body["status"] == "OK"
    assert "/api/studies" in body["endpoints"].values()


def test_missing_query_short_circuits(api, execution_log):
    response = api.get("/api/studies")

    assert response.status_code == 200
    body = response.json()
    assert body["studies"] == []
    assert body["total"] == 0
    assert body["totalPages"] == 0
    assert api.upstream.session.calls == []
    execution_log.record("API", "GET /api/studies without q made zero upstream calls")


def test_search_returns_camel_case_page(api):
    body = api.get("/api/studies", params={"q": "liver", "limit": 1, "sort": "recent"}).json()

    assert body["total"] == 2
    assert body["totalPages"] == 2
    assert body["page"] == 1
    assert body["limit"] == 1
    assert body["studies"][0]["id"] == "GSE2"
    assert body["studies"][0]["expType"] == "Unknown"
    assert "libraryStrategy" in body["studies"][0]


def test_search_array_filters_accept_bracket_names(api):
    by_plain = api.get("/api/studies", params=[("q", "liver"), ("organisms", "Mus musculus")]).json()
    by_bracket = api.get("/api/studies", params=[("q", "liver"), ("organisms[]", "Homo sapiens")]).json()

    assert [s["id"] for s in by_plain["studies"]] == ["GSE2"]
    assert [s["id"] for s in by_bracket["studies"]] == ["GSE1"]


def test_one_sided_year_filter_uses_catalog_bounds(api):
    body = api.get("/api/studies", params={"q": "liver", "yearMin": 2020}).json()

    assert [s["id"] for s in body["studies"]] == ["GSE2"]


def test_large_limit_is_accepted(api):
    response = api.get("/api/studies", params={"q": "liver", "limit": 200})

    assert response.status_code == 200
    assert response.json()["limit"] == 200
    assert response.json()["totalPages"] == 1
    gds_search = [c for c in api.upstream.session.calls if c["url"].endswith("esearch.fcgi") and c["params"]["db"] == "gds"]
    assert gds_search[0]["params"]["retmax"] == 1000


def test_enhanced_query_reaches_esearch(make_client, execution_log):
    client = make_client(_handler, retry_delay_s=0)
    model = StubModel(output='{"keywords": "liver AND fibrosis"}')
    app = create_app(
        Settings(gemini_model="gemini-test", enhance_queries=True),
        search_service=StudySearchService(client),
        assistant=StudyAssistant(model),
    )

    body = TestClient(app).get("/api/studies", params={"q": "scarring in the liver"}).json()

    terms = [c["params"]["term"] for c in client.session.calls if c["url"].endswith("esearch.fcgi")]
    assert terms == ["liver AND fibrosis", "liver AND fibrosis"]
    assert "scarring in the liver" in model.prompts[0]
    assert body["total"] == 2
    execution_log.record("API", f"Rewritten ESearch terms: {terms}")


def test_invalid_page_is_a_client_error(api):
    response = api.get("/api/studies", params={"q": "liver", "page": 0})

    assert response.status_code == 400
    assert "error" in response.json()


def test_study_detail_and_not_found(api):
    detail = api.get("/api/studies/GSE1")
    missing = api.get("/api/studies/GSE404")

    assert detail.status_code == 200
    assert detail.json()["id"] == "GSE1"
    assert detail.json()["similarStudies"] == []
    assert missing.status_code == 404
    assert missing.json() == {"error": "Study not found"}


def test_study_detail_echoes_requested_accession(api):
    response = api.get("/api/studies/gse1")

    assert response.status_code == 200
    assert response.json()["id"] == "gse1"
    assert response.json()["title"] == "Human liver RNA-seq"


def test_samples_degrade_to_empty_and_files_are_empty(api):
    assert api.get("/api/studies/GSE1/samples").json() == {"samples": []}
    assert api.get("/api/studies/GSE1/files").json() == {"files": []}


def test_chat_requires_message(api):
    response = api.post("/api/assistant/chat", json={"message": "   "})

    assert response.status_code == 400
    assert response.json()["error"]


def test_chat_with_context_study_id(api):
    response = api.post("/api/assistant/chat", json={"message": "Summarize", "contextStudy": "GSE1"})

    assert response.status_code == 200
    assert response.json() == {"response": "Model answer", "model": "gemini-test"}
    assert "GSE1" in api.model.prompts[0]


def test_chat_model_failure_still_returns_200(make_client):
    app = create_app(
        Settings(),
        search_service=StudySearchService(make_client(_handler)),
        assistant=StudyAssistant(StubModel(fail=True)),
    )

    response = TestClient(app).post("/api/assistant/chat", json={"message": "hi"})

    assert response.status_code == 200
    assert response.json()["response"] == CHAT_FALLBACK


def test_recommendations_with_unknown_study_fall_back_to_query(api):
    api.model.output = '[{"id": "GSE7", "title": "Seven", "reason": "Related"}]'

    body = api.get("/api/assistant/recommendations", params={"studyId": "GSE404", "query": "liver"}).json()

    assert body == {"recommendations": [{"id": "GSE7", "title": "Seven", "reason": "Related"}], "from": "query"}


def test_recommendations_without_inputs(api):
    body = api.get("/api/assistant/recommendations").json()

    assert body["from"] == "none"
    assert body["recommendations"] == []


def test_export_csv_escapes_cells(api, execution_log):
    response = api.post("/api/export", json={"studyIds": ["GSE2", "GSE404"], "columns": ["id", "title"], "format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0] == "id,title"
    assert lines[1] == 'GSE2,"Foo, ""bar"""'
    assert len(lines) == 2
    execution_log.record("Export", 'Title Foo, "bar" rendered as "Foo, ""bar"""')


def test_export_json_with_inline_studies(api):
    inline = {"id": "X1", "title": "Inline", "authors": ["A", "B"]}

    body = api.post("/api/export", json={"studies": [inline], "columns": ["id", "authors", "journal"], "format": "json"}).json()

    assert body == {"data": [{"id": "X1", "authors": ["A", "B"], "journal": None}], "format": "json"}


def test_export_csv_joins_lists(api):
    inline = {"id": "X1", "authors": ["A", "B"], "journal": None}

    text = api.post("/api/export", json={"studies": [inline], "columns": ["id", "authors", "journal"]}).text

    rows = list(csv.reader(io.StringIO(text)))
    assert rows == [["id", "authors", "journal"], ["X1", "A; B", ""]]


def test_filter_options_catalog(api):
    body = api.get("/api/filters/options").json()

    assert "Homo sapiens" in body["organisms"]
    assert "scRNA-seq" in body["expTypes"]
    assert body["years"] == {"min": 2005, "max": date.today().year}
    assert body["studyTypes"] == ["In vivo", "In vitro", "In silico"]
