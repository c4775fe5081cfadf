"""Shared pytest configuration and fixtures for all tests."""

from typing import Callable

import pytest

VCF_HEADER = "\n".join(
    [
        "##fileformat=VCFv4.2",
        "##INFO=<ID=ANN,Number=.,Type=String,Description=\"Functional annotations\">",
        "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO",
    ]
)


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that call a hosted model")


def make_line(
    chrom: str = "chr1",
    pos: str = "100",
    variant_id: str = "rs1",
    ref: str = "A",
    alt: str = "G",
    qual: str = "50",
    filter_status: str = "PASS",
    info: str = "ANN=G|missense_variant|MODERATE|BRCA1|ENSG00000012048",
) -> str:
    return "\t".join([chrom, pos, variant_id, ref, alt, qual, filter_status, info])


def ann(consequence: str, gene: str, impact: str = "MODERATE", allele: str = "G") -> str:
    return f"{allele}|{consequence}|{impact}|{gene}|ENSG00000000001|transcript"


def make_vcf(*lines: str) -> str:
    return VCF_HEADER + "\n" + "\n".join(lines) + "\n"


# ==================== Common Fixtures ====================


@pytest.fixture
def line_factory() -> Callable[..., str]:
    """Build a tab-separated VCF data line with sensible defaults."""
    return make_line


@pytest.fixture
def sample_vcf() -> str:
    """A small annotated VCF with one accepted and several rejected records."""
    return make_vcf(
        make_line(),
        make_line(variant_id="rs2", pos="200", qual="10"),
        make_line(variant_id="rs3", pos="300", info="AF=0.3;ANN=" + ann("stop_gained", "TP53", "HIGH")),
        make_line(variant_id="rs4", pos="400", info="DP=20"),
        make_line(
            chrom="chr17",
            variant_id=".",
            pos="7675088",
            ref="C",
            alt="T",
            info="AF=0.0001;ANN=" + ann("stop_gained", "TP53", "HIGH"),
        ),
    )


@pytest.fixture
def vcf_file(tmp_path, sample_vcf):
    path = tmp_path / "sample.vcf"
    path.write_text(sample_vcf, encoding="utf-8")
    return path


@pytest.fixture
def mock_narrator():
    """Provide a mock narrator for testing."""
    from geneguard.narrative import MockNarrator

    return MockNarrator()


@pytest.fixture
def simple_template():
    from geneguard.prompt import PromptTemplate

    return PromptTemplate(
        "Patient ${age} ${gender}\nSummary: ${variantSummary}\nGenes: ${geneList}${detailedVariantInfo}"
    )


@pytest.fixture
def clean_env(monkeypatch):
    """Remove configuration environment variables that change defaults."""
    for name in (
        "GENEGUARD_PROMPT",
        "GENEGUARD_GEMINI_MODEL",
        "GEMINI_API_KEY",
        "GOOGLE_API_KEY",
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "GROQ_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
