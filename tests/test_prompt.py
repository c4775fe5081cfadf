import pytest

from conftest import ann, make_line, make_vcf
from geneguard.models import ExtractionErrorKind, ExtractionResult, PatientProfile
from geneguard.prompt import DEFAULT_PROMPT, NO_GENES_IDENTIFIED, PromptError, PromptTemplate
from geneguard.variants import extract_meaningful_gene_info


def test_default_template_has_every_placeholder(clean_env):
    template = PromptTemplate.load()
    for name in PromptTemplate.PLACEHOLDERS:
        assert "${" + name + "}" in template.text


def test_environment_template_overrides_file(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv("GENEGUARD_PROMPT", "inline ${age}")
    custom = tmp_path / "prompt.txt"
    custom.write_text("from file")
    assert PromptTemplate.load(custom).text == "inline ${age}"


def test_custom_template_path(clean_env, tmp_path):
    custom = tmp_path / "prompt.txt"
    custom.write_text("Genes: ${geneList}")
    assert PromptTemplate.load(custom).text == "Genes: ${geneList}"


def test_missing_template_file(clean_env, tmp_path):
    with pytest.raises(PromptError, match="not found"):
        PromptTemplate.load(tmp_path / "missing.txt")


def test_empty_template_rejected():
    with pytest.raises(PromptError):
        PromptTemplate("   ")


def test_render_fills_all_placeholders():
    content = make_vcf(
        make_line(),
        make_line(variant_id="rs2", qual="99.5", info="ANN=" + ann("stop_gained", "TP53", "HIGH")),
    )
    result = extract_meaningful_gene_info(content)
    template = PromptTemplate(
        "${age}/${gender}\n${variantSummary}\n${geneList}\n${detailedVariantInfo}\nAgain: ${geneList}"
    )

    prompt = template.render(result, PatientProfile(age=40, gender="male"))

    assert "${" not in prompt
    assert prompt.startswith("40/male\n")
    assert result.variant_summary in prompt
    assert prompt.count("TP53, BRCA1") == 2
    assert "Key variants considered for analysis (effects are based on VCF annotations):" in prompt
    assert "- Variant: rs2 A>G, Gene: TP53, Predicted Effect: stop_gained, Impact: HIGH, QUAL: 99.5" in prompt
    assert "- Variant: rs1 A>G, Gene: BRCA1, Predicted Effect: missense_variant, Impact: MODERATE, QUAL: 50" in prompt


def test_render_without_genes():
    result = extract_meaningful_gene_info(make_line(info="ANN=G|missense_variant|MODERATE||x"))
    prompt = PromptTemplate("Genes: ${geneList}").render(result)
    assert prompt == f"Genes: {NO_GENES_IDENTIFIED}"


def test_render_uses_default_profile():
    result = extract_meaningful_gene_info(make_line())
    assert PromptTemplate("${age} ${gender}").render(result) == "25 female"


def test_render_rejects_failed_extraction():
    failed = ExtractionResult.failure(ExtractionErrorKind.EMPTY_INPUT, "empty")
    with pytest.raises(PromptError):
        PromptTemplate("${variantSummary}").render(failed)


def test_default_prompt_is_packaged():
    assert DEFAULT_PROMPT.exists()
