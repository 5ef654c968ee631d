from concurrent.futures import ThreadPoolExecutor

import pytest

from app.loan_engine.models import SanctionRecord
from app.loan_engine.sanction_letter import (
    SanctionLetterService,
    format_letter_date,
    render_sanction_letter,
)


@pytest.fixture
def record():
    return SanctionRecord(
        full_name="Abheek Sehgal",
        mobile="9876543210",
        loan_amount=300000,
        tenure_months=36,
        emi=9750.6,
        interest_rate=10.5,
        credit_score=740,
        approved_at="2026-10-18T09:30:00+00:00",
    )


def test_render_produces_pdf(record):
    content = render_sanction_letter("SL1760000000000ABCDEF123", record)

    assert content.startswith(b"%PDF")
    assert len(content) > 1000


def test_render_tolerates_non_latin_names(record):
    record = record.model_copy(update={"full_name": "Ābheek Sehgal ₹"})
    assert render_sanction_letter("SL1", record).startswith(b"%PDF")


def test_letter_is_cached_on_disk(tmp_path, record):
    service = SanctionLetterService(tmp_path / "letters")

    assert service.exists("SL1") is False
    first = service.get_or_render("SL1", record)

    assert service.path_for("SL1").read_bytes() == first
    assert service.exists("SL1") is True
    assert service.get_or_render("SL1", record) == first


@pytest.mark.parametrize("sanction_id", ["../etc/passwd", "SL1.pdf", "", "SL 1"])
def test_path_like_ids_are_refused(tmp_path, sanction_id):
    with pytest.raises(ValueError):
        SanctionLetterService(tmp_path).path_for(sanction_id)


def test_format_letter_date():
    assert format_letter_date("2026-10-18T09:30:00+00:00") == "18 October 2026"


def test_concurrent_renders_leave_one_complete_letter(tmp_path, record):
    service = SanctionLetterService(tmp_path / "letters")

    with ThreadPoolExecutor(max_workers=8) as pool:
        letters = list(pool.map(lambda _: service.get_or_render("SL1", record), range(8)))

    for content in letters:
        assert content.startswith(b"%PDF")
        assert b"%%EOF" in content[-16:]
    assert [p.name for p in (tmp_path / "letters").iterdir()] == ["SL1.pdf"]
    assert b"%%EOF" in service.path_for("SL1").read_bytes()[-16:]
