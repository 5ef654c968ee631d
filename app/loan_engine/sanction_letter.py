"""PDF sanction letters for approved loans."""

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .config import SANCTION_LETTER_DIR
from .models import SanctionRecord
from .tools.calculations import format_inr

logger = logging.getLogger(__name__)

BRAND = "CrediFlow"
BRAND_BLUE = (0, 51, 160)
BRAND_GOLD = (212, 165, 116)
DARK_GRAY = (51, 51, 51)
MID_GRAY = (102, 102, 102)

TERMS = [
    "This sanction letter is valid for 15 days from the date of issue.",
    "The loan amount will be disbursed after completion of all documentation and verification.",
    "Processing fee and other applicable charges will be communicated separately.",
    "The loan is subject to final verification of submitted documents.",
    "Interest will be charged as per the prevailing rate at the time of disbursement.",
    "Prepayment charges may apply as per loan agreement terms.",
    "Please review and sign the loan agreement within 15 days to proceed.",
]


def format_letter_date(value: Optional[str]) -> str:
    """'2026-10-18T09:30:00+00:00' -> '18 October 2026'."""
    moment = datetime.fromisoformat(value) if value else datetime.now()
    return moment.strftime("%d %B %Y")


def _latin1(text: str) -> str:
    return text.encode("latin-1", errors="replace").decode("latin-1")


def _rupees(amount: float) -> str:
    # Core PDF fonts are latin-1 only, so no rupee sign
    return f"Rs. {format_inr(amount)}"


def render_sanction_letter(sanction_id: str, record: SanctionRecord) -> bytes:
    """
    Render the sanction letter for an approved loan.

    Args:
        sanction_id: Id the sanction was issued under
        record: Stored sanction details

    Returns:
        PDF document bytes
    """
    pdf = FPDF(format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_margins(18, 15, 18)
    pdf.add_page()

    # Header
    pdf.set_font("Helvetica", "B", 26)
    pdf.set_text_color(*BRAND_BLUE)
    pdf.cell(0, 12, BRAND, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", "", 9)
    pdf.set_text_color(*MID_GRAY)
    pdf.cell(0, 5, "Personal Loans", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*BRAND_GOLD)
    pdf.set_line_width(0.8)
    pdf.line(18, pdf.get_y() + 3, 192, pdf.get_y() + 3)
    pdf.ln(10)

    pdf.set_font("Helvetica", "B", 18)
    pdf.set_text_color(*BRAND_BLUE)
    pdf.cell(0, 10, "LOAN SANCTION LETTER", align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)

    pdf.set_font("Helvetica", "", 10)
    pdf.set_text_color(*DARK_GRAY)
    pdf.cell(0, 5, f"Date: {format_letter_date(record.approved_at)}", align="R",
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.cell(0, 5, f"Sanction ID: {sanction_id}", align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(6)

    # Body
    pdf.set_font("Helvetica", "", 11)
    pdf.cell(0, 6, _latin1(f"Dear {record.full_name or 'Customer'},"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(3)
    pdf.multi_cell(
        0, 6,
        f"We are pleased to inform you that your loan application has been approved by {BRAND}. "
        "Your application has been carefully reviewed and we are delighted to sanction your loan request.",
    )
    pdf.ln(2)
    pdf.multi_cell(
        0, 6,
        "The loan sanction is subject to the terms and conditions mentioned below and final documentation.",
    )
    pdf.ln(5)

    # Loan details block
    details = [
        ("Applicant Name:", _latin1(record.full_name or "-")),
        ("Mobile Number:", _latin1(record.mobile or "-")),
        ("Sanctioned Loan Amount:", _rupees(record.loan_amount)),
        ("Interest Rate:", f"{record.interest_rate}% per annum"),
        ("Loan Tenure:", f"{record.tenure_months} months"),
        ("Monthly EMI:", _rupees(record.emi)),
        ("Credit Score:", str(record.credit_score)),
    ]
    top = pdf.get_y()
    pdf.set_fill_color(248, 249, 250)
    pdf.set_draw_color(*BRAND_BLUE)
    pdf.set_line_width(0.4)
    pdf.rect(18, top, 174, 12 + 8 * len(details), style="DF")

    pdf.set_xy(24, top + 3)
    pdf.set_font("Helvetica", "B", 12)
    pdf.set_text_color(*BRAND_BLUE)
    pdf.cell(0, 6, "LOAN SANCTION DETAILS", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_y(top + 11)
    for label, value in details:
        pdf.set_x(28)
        pdf.set_font("Helvetica", "", 10)
        pdf.set_text_color(85, 85, 85)
        pdf.cell(70, 8, label)
        pdf.set_font("Helvetica", "B", 11)
        pdf.set_text_color(*BRAND_BLUE)
        pdf.cell(0, 8, value, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(8)

    # Terms
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 7, "Terms & Conditions:", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", "", 9)
    pdf.set_text_color(*DARK_GRAY)
    for number, term in enumerate(TERMS, start=1):
        pdf.multi_cell(0, 5, f"{number}. {term}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(6)

    # Contact and signature
    pdf.set_font("Helvetica", "B", 11)
    pdf.set_text_color(*BRAND_BLUE)
    pdf.cell(0, 6, "For any queries, please contact us:", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", "", 9)
    pdf.set_text_color(*DARK_GRAY)
    for line in ("Phone: 1800-209-8800 (Toll-Free)", "Email: support@crediflow.com", "Website: www.crediflow.com"):
        pdf.cell(0, 5, line, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(8)
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 6, "Yours sincerely,", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)
    pdf.set_font("Helvetica", "B", 12)
    pdf.set_text_color(*BRAND_BLUE)
    pdf.cell(0, 6, f"{BRAND} Approval Team", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    # Footer
    pdf.ln(8)
    pdf.set_draw_color(*BRAND_GOLD)
    pdf.line(18, pdf.get_y(), 192, pdf.get_y())
    pdf.ln(2)
    pdf.set_font("Helvetica", "", 7)
    pdf.set_text_color(153, 153, 153)
    pdf.cell(0, 4, f"{BRAND}. All rights reserved.", align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.cell(0, 4, "This is a system-generated document and does not require a physical signature.",
             align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    return bytes(pdf.output())


class SanctionLetterService:
    """Renders sanction letters and caches them on disk as <sanction_id>.pdf."""

    def __init__(self, directory: str | Path = SANCTION_LETTER_DIR):
        self.directory = Path(directory)

    def path_for(self, sanction_id: str) -> Path:
        # Ids are generated as 'SL' + digits + hex; reject anything path-like
        if not sanction_id.isalnum():
            raise ValueError(f"Invalid sanction id: {sanction_id!r}")
        return self.directory / f"{sanction_id}.pdf"

    def exists(self, sanction_id: str) -> bool:
        return self.path_for(sanction_id).exists()

    def get_or_render(self, sanction_id: str, record: SanctionRecord) -> bytes:
        """Return the cached letter, rendering and caching it on first request."""
        path = self.path_for(sanction_id)
        if self.exists(sanction_id):
            return path.read_bytes()

        content = render_sanction_letter(sanction_id, record)
        self.directory.mkdir(parents=True, exist_ok=True)
        # Readers only ever see a complete file at <id>.pdf
        with tempfile.NamedTemporaryFile(dir=self.directory, suffix=".tmp", delete=False) as handle:
            handle.write(content)
        try:
            os.replace(handle.name, path)
        except OSError:
            os.unlink(handle.name)
            raise
        logger.info("Sanction letter generated: %s", path)
        return content
