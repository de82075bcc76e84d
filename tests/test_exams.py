import pytest

from nutribot.services.exams import (
    UnsupportedDocument, clean_text, detect_exam_type, extract_health_indicators, extract_text,
)
from nutribot.services.formatting import (
    BULLET, LOW, NORMAL, TELEGRAM_LIMIT, format_analysis, split_message, split_sections,
)


def test_detect_exam_type():
    assert detect_exam_type("Glicose em jejum: 126 mg/dL (elevada)") == "glicemia"
    assert detect_exam_type("Colesterol total 240") == "lipidograma"
    assert detect_exam_type("HEMOGRAMA COMPLETO") == "hemograma"
    assert detect_exam_type("paciente em bom estado") == "exame laboratorial"


def test_indicators_glucose():
    found = extract_health_indicators("Glicose em jejum: 126 mg/dL (elevada)")
    assert found.indicators == ["glicose"]
    assert found.possible_conditions == ["possível diabetes"]
    assert found.summary == "1 indicadores encontrados: glicose. Possíveis condições: possível diabetes"


def test_indicators_lipids():
    found = extract_health_indicators("Colesterol total 240, LDL elevado 160, HDL 40")
    assert found.indicators == ["colesterol", "LDL", "HDL"]
    assert found.possible_conditions == ["possível dislipidemia"]


def test_indicators_none():
    found = extract_health_indicators("paciente em bom estado")
    assert found.indicators == []
    assert found.summary == "0 indicadores encontrados. Nenhuma condição identificada."


def test_extract_text_latin1():
    assert extract_text("exame.txt", "Hemácias 4,5".encode("latin-1")) == "Hemácias 4,5"
    assert extract_text("exame.txt", b"  Glicose\n\n 99 ") == "Glicose 99"


@pytest.mark.parametrize("name,payload", [
    ("exame.pdf", b"anything"),
    ("exame.txt", b"%PDF-1.4 truncated"),
    ("exame.docx", b"text"),
])
def test_extract_text_unsupported(name, payload):
    with pytest.raises(UnsupportedDocument):
        extract_text(name, payload)


def test_clean_text():
    assert clean_text("a\x00b\t\tc") == "a b c"


ANALYSIS = (
    "Resumo geral.\n"
    "### Hemograma\n"
    "**Hemoglobina**: 10 g/dL, abaixo do ideal\n"
    "- manter hidratação\n"
    "### Considerações finais\n"
    "Tudo dentro do intervalo esperado."
)


def test_split_sections():
    out = split_sections(ANALYSIS)
    assert [l.text for l in out.introduction] == ["Resumo geral."]
    assert [(s.title, s.kind) for s in out.sections] == [
        ("Hemograma", "blood"), ("Considerações finais", "conclusion"),
    ]
    hb, tip = out.sections[0].lines
    assert (hb.exam_name, hb.status, hb.text) == ("Hemoglobina", LOW, "10 g/dL, abaixo do ideal")
    assert tip.status == BULLET
    assert out.sections[1].lines[0].status == NORMAL


def test_split_sections_inline_headers():
    out = split_sections("Intro ### Metabolismo\nglicose normal")
    assert out.sections[0].title == "Metabolismo"
    assert out.sections[0].kind == "metabolism"


def test_format_analysis_html():
    html = format_analysis(ANALYSIS)
    assert "🩸 <b>Hemograma</b>" in html
    assert "🟡 <b>Hemoglobina</b> 10 g/dL, abaixo do ideal <i>[Baixo]</i>" in html
    assert "• manter hidratação" in html
    assert "&lt; 5" in format_analysis("### Geral\nvalor < 5")


def test_format_empty():
    assert format_analysis("") == ""


def _pdf(text: bytes) -> bytes:
    content = b"BT /F1 12 Tf 72 720 Td (" + text + b") Tj ET"
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = b"%PDF-1.4\n"
    offsets = []
    for i, obj in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % i + obj + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1) + b"0000000000 65535 f \n"
    out += b"".join(b"%010d 00000 n \n" % off for off in offsets)
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref)
    return out


def test_extract_text_pdf():
    text = extract_text("exame.pdf", _pdf(b"Glicose em jejum 126 mg/dL elevada"))
    assert text.startswith("Página 1:")
    assert "Glicose em jejum 126" in text
    assert detect_exam_type(text) == "glicemia"


def test_extract_text_pdf_without_text():
    with pytest.raises(UnsupportedDocument):
        extract_text("scan.pdf", _pdf(b""))


def test_split_message_short():
    assert split_message("a\n\nb") == ["a\n\nb"]
    assert split_message("") == []


def test_split_message_long_section():
    section = "\n".join(f"🟢 <b>Marcador {i}</b> " + "x" * 90 for i in range(60))
    parts = split_message("Intro\n\n" + section)
    assert len(parts) > 1
    assert all(len(p) <= TELEGRAM_LIMIT for p in parts)
    assert "".join(parts).replace("\n", "") == ("Intro" + section).replace("\n", "")


def test_split_message_long_line():
    parts = split_message("y" * 9000, limit=4000)
    assert [len(p) for p in parts] == [4000, 4000, 1000]
