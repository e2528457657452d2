from datetime import date

from conftest import esummary_payload
from src.ingestion.models import StudyDetail
from src.structuring.records import expand_sra_record, parse_runs
from src.structuring.transformer import transform_batch, transform_detail

SRA_EXPXML = (
    '<Summary><Title>RNA-seq of hypoxic MCF-7 cells</Title>'
    '<Platform instrument_model="Illumina NovaSeq 6000">ILLUMINA</Platform></Summary>'
    '<Submitter acc="SRA1" center_name="GEO" contact_name="Jane Doe"/>'
    '<Experiment acc="SRX100" ver="1" status="public" name="GSM5: MCF-7 hypoxia rep1"/>'
    '<Study acc="SRP10" name="Hypoxia in breast cancer"/>'
    '<Organism taxid="9606" ScientificName="Homo sapiens"/>'
    '<Sample acc="SRS7" name=""/>'
    '<Library_descriptor><LIBRARY_NAME>hx1</LIBRARY_NAME><LIBRARY_STRATEGY>RNA-Seq</LIBRARY_STRATEGY>'
    '<LIBRARY_SOURCE>TRANSCRIPTOMIC</LIBRARY_SOURCE></Library_descriptor>'
)
SRA_RUNS = (
    '<Run acc="SRR1" total_spots="12345678" total_bases="2469135600" load_done="true"/>'
    '<Run acc="SRR2" total_spots="1000000" total_bases="150000000" load_done="true"/>'
)


def test_missing_record_body_is_skipped(execution_log):
    payload = esummary_payload(
        {
            "200001": {"accession": "GSE1", "title": "First"},
            "200003": {"accession": "GSE3", "title": "Third"},
        },
        uids=["200001", "200002", "200003"],
    )

    studies = transform_batch(payload, "gds")

    assert [s.id for s in studies] == ["GSE1", "GSE3"]
    execution_log.record("Transformer", "3 requested uids with one missing body produced 2 studies")


def test_batch_id_fallbacks_and_accession_columns():
    payload = esummary_payload(
        {
            "1": {"accession": "GSE10"},
            "2": {"ids": {"accession": "GSE20"}},
            "3": {"title": "no accession"},
        }
    )

    studies = transform_batch(payload, "gds")

    assert [s.id for s in studies] == ["GSE10", "GSE20", "GSE3"]
    assert studies[0].geo_accession == "GSE10"
    assert studies[0].sra_accession is None
    assert studies[2].accession is None
    assert studies[2].geo_accession is None


def test_batch_populates_normalized_fields():
    payload = esummary_payload(
        {
            "200123": {
                "accession": "GSE123",
                "title": "Single-cell profiling of mouse liver",
                "summary": "We studied hepatocellular carcinoma progression in mice.",
                "taxon": "Mus musculus",
                "gdstype": "Expression profiling by high throughput sequencing",
                "n_samples": 24,
                "pdat": "2022/08/15",
            }
        }
    )

    study = transform_batch(payload, "gds")[0]

    assert study.organism == "Mus musculus"
    assert study.exp_type == "scRNA-seq"
    assert study.year == 2022
    assert study.samples == 24
    assert study.tissue == "Liver"
    assert "carcinoma" in study.disease
    assert study.abstract.startswith("We studied")
    assert study.to_api()["expType"] == "scRNA-seq"


def test_malformed_payloads_yield_empty_lists():
    assert transform_batch({}, "gds") == []
    assert transform_batch({"result": {"uids": "oops"}}, "gds") == []
    assert transform_batch(None, "sra") == []


def test_sra_records_are_expanded_from_expxml():
    payload = esummary_payload({"9001": {"expxml": SRA_EXPXML, "runs": SRA_RUNS, "createdate": "2020/01/02"}})

    study = transform_batch(payload, "sra")[0]

    assert study.id == "SRX100"
    assert study.sra_accession == "SRX100"
    assert study.geo_accession is None
    assert study.title == "RNA-seq of hypoxic MCF-7 cells"
    assert study.organism == "Homo sapiens"
    assert study.platform == "Illumina NovaSeq"
    assert study.instrument == "Illumina NovaSeq 6000"
    assert study.library_strategy == "RNA-Seq"
    assert study.exp_type == "RNA-seq"
    assert study.submitter == "Jane Doe"
    assert study.year == 2020


def test_expand_sra_record_does_not_mutate_and_explicit_fields_win():
    raw = {"expxml": SRA_EXPXML, "title": "Explicit title"}

    merged = expand_sra_record(raw)

    assert merged["title"] == "Explicit title"
    assert merged["study_accession"] == "SRP10"
    assert "study_accession" not in raw


def test_escaped_and_broken_fragments():
    escaped = SRA_EXPXML.replace("<", "&lt;").replace(">", "&gt;")
    assert expand_sra_record({"expxml": escaped})["organism"] == "Homo sapiens"
    assert expand_sra_record({"expxml": "<Summary><Title>unclosed"}) == {"expxml": "<Summary><Title>unclosed"}


def test_parse_runs():
    runs = parse_runs({"runs": SRA_RUNS})

    assert [run.accession for run in runs] == ["SRR1", "SRR2"]
    assert runs[0].total_spots == 12345678
    assert runs[1].total_bases == 150000000
    assert parse_runs({}) == []


def test_detail_uses_first_uid_and_echoes_requested_accession():
    payload = esummary_payload(
        {
            "200555": {"title": "Detail", "replicates": "4", "pdat": "2018/01/01"},
            "200556": {"accession": "GSE556"},
        }
    )

    detail = transform_detail(payload, "gds", "GSE555")

    assert isinstance(detail, StudyDetail)
    assert detail.id == "GSE555"
    assert detail.title == "Detail"
    assert detail.replicates == 4
    assert detail.similar_studies == []
    assert detail.to_api()["similarStudies"] == []


def test_detail_without_requested_accession_uses_record_id():
    payload = esummary_payload({"7": {"accession": "GSE7"}})

    assert transform_detail(payload, "gds").id == "GSE7"
    assert transform_detail(payload, "gds", "  ").id == "GSE7"


def test_detail_returns_none_without_uid_or_body():
    assert transform_detail({"result": {"uids": []}}, "gds", "GSE1") is None
    assert transform_detail({"result": {"uids": ["1"]}}, "gds", "GSE1") is None
    assert transform_detail({}, "gds") is None


def test_unparseable_year_defaults_to_current_year():
    payload = esummary_payload({"1": {"accession": "GSE1", "pdat": "unknown"}})

    assert transform_batch(payload, "gds")[0].year == date.today().year
