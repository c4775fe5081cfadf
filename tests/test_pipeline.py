import pytest

from geneguard.models import ExtractionErrorKind, PatientProfile
from geneguard.narrative import MockNarrator, ReportParseError
from geneguard.pipeline import RiskReportPipeline, VariantExtractionError


def test_pipeline_builds_response(sample_vcf, mock_narrator, simple_template):
    pipeline = RiskReportPipeline(narrator=mock_narrator, template=simple_template)
    response = pipeline.analyze(sample_vcf, PatientProfile(age=52, gender="male"))

    assert response.identified_genes == ["TP53", "BRCA1"]
    assert [variant.gene for variant in response.processed_variants] == ["TP53", "BRCA1"]
    assert response.ai_analysis.overall_risk_level == "Moderate"

    prompt = mock_narrator.prompts[0]
    assert prompt.startswith("Patient 52 male")
    assert "Genes: TP53, BRCA1" in prompt
    assert "chr17:7675088 C>T (Gene: TP53, Effect: stop_gained)" in prompt


def test_pipeline_reports_extraction_failure(mock_narrator, simple_template):
    pipeline = RiskReportPipeline(narrator=mock_narrator, template=simple_template)
    with pytest.raises(VariantExtractionError) as excinfo:
        pipeline.analyze("##fileformat=VCFv4.2\n")

    assert excinfo.value.result.error_kind is ExtractionErrorKind.NO_DATA_LINES
    assert str(excinfo.value).startswith("Could not process file: ")
    assert mock_narrator.prompts == []


def test_pipeline_propagates_parse_errors(sample_vcf, simple_template):
    pipeline = RiskReportPipeline(narrator=MockNarrator(raw_text="not json"), template=simple_template)
    with pytest.raises(ReportParseError):
        pipeline.analyze(sample_vcf)


def test_pipeline_reads_files(vcf_file, mock_narrator, simple_template):
    pipeline = RiskReportPipeline(narrator=mock_narrator, template=simple_template)
    payload = pipeline.analyze_file(vcf_file).to_dict()
    assert payload["identifiedGenesForPrompt"] == ["TP53", "BRCA1"]
    assert payload["processedVariantsInput"][0]["variant"] == "chr17:7675088 C>T"


def test_pipeline_uses_default_template(clean_env, sample_vcf, mock_narrator):
    pipeline = RiskReportPipeline(narrator=mock_narrator)
    pipeline.analyze(sample_vcf)
    assert "${" not in mock_narrator.prompts[0]
