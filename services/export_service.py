from io import BytesIO

import pandas as pd
from fpdf import FPDF

from services.errors import NotFound, ValidationError
from services.marks_service import all_marks

EXPORT_FORMATS = {
    "csv": ("text/csv", "csv"),
    "excel": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
    "pdf": ("application/pdf", "pdf"),
}

MARKS_HEADERS = ["Student", "Email", "Class", "ST1", "ST2", "Evaluation", "End Term", "Marks"]


def marks_frame(class_id=None):
    rows = []
    for m in all_marks(class_id=class_id):
        rows.append([
            m["users"]["name"],
            m["users"]["email"],
            m["classes"]["name"],
            m["st1"],
            m["st2"],
            m["evaluation"],
            m["end_term"],
            m["marks"],
        ])
    return pd.DataFrame(rows, columns=MARKS_HEADERS)


def _latin1(value):
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return "-"
    # core PDF fonts only cover latin-1
    return str(value).encode("latin-1", "replace").decode("latin-1")


def frame_to_pdf(df, title):
    pdf = FPDF()
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(190, 10, title, align="C")
    pdf.ln(14)

    col_width = 190 / len(df.columns) if len(df.columns) > 0 else 40

    pdf.set_font("Helvetica", "B", 8)
    for col in df.columns:
        pdf.cell(col_width, 8, str(col), border=1, align="C")
    pdf.ln()

    pdf.set_font("Helvetica", size=8)
    for row in df.itertuples(index=False):
        for item in row:
            pdf.cell(col_width, 8, _latin1(item), border=1, align="C")
        pdf.ln()

    return bytes(pdf.output())


def export_marks(file_format="csv", class_id=None):
    """Render the marks sheet; returns (buffer, mimetype, download name)."""
    if file_format not in EXPORT_FORMATS:
        raise ValidationError("format must be one of: csv, excel, pdf")

    df = marks_frame(class_id)
    if df.empty:
        raise NotFound("No marks found for this selection")

    mimetype, extension = EXPORT_FORMATS[file_format]
    output = BytesIO()

    if file_format == "excel":
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Marks")
    elif file_format == "pdf":
        output.write(frame_to_pdf(df, "MARKS REPORT"))
    else:
        output.write(df.to_csv(index=False).encode("utf-8"))

    output.seek(0)
    return output, mimetype, f"marks_report.{extension}"
