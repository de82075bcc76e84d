"""
Medical exam text: extraction from uploaded documents and keyword-based
classification (exam type, health indicators, possible conditions).

Classification is a plain dictionary lookup over the lowercased text; it is a
hint for the user and for the AI prompt, not a diagnosis.
"""
from __future__ import annotations
import io
import logging
import re
from dataclasses import dataclass, field

from pypdf import PdfReader
from pypdf.errors import PyPdfError

logger = logging.getLogger(__name__)

DEFAULT_EXAM_TYPE = "exame laboratorial"

# checked in this order; the first type with any keyword present wins
EXAM_KEYWORDS = {
    "hemograma": ["hemograma", "hemoglobina", "hemácias", "leucócitos", "plaquetas", "hematócrito"],
    "glicemia": ["glicose", "glicemia", "hemoglobina glicada", "a1c", "hba1c"],
    "lipidograma": ["colesterol", "ldl", "hdl", "triglicerídeos", "triglicerídeo", "vldl"],
    "tireoide": ["tsh", "t3", "t4", "tireoide", "tireóide"],
    "função hepática": ["tgo", "tgp", "ast", "alt", "gama gt", "fosfatase alcalina"],
    "função renal": ["ureia", "uréia", "creatinina", "taxa de filtração", "microalbumina"],
    "vitaminas": ["vitamina", "vit ", "vit.", "cobalamina", "ácido fólico", "25-oh"],
    "minerais": ["ferro", "cálcio", "zinco", "magnésio", "sódio", "potássio"],
    "hormonal": ["testosterona", "estradiol", "cortisol", "progesterona", "fsh", "lh"],
}

HEALTH_INDICATORS = [
    ("hemoglobina", "hemoglobina"),
    ("glicose", "glicose"),
    ("colesterol", "colesterol"),
    ("ldl", "LDL"),
    ("hdl", "HDL"),
    ("triglicerídeo", "triglicerídeos"),
    ("tsh", "TSH"),
    ("t3", "T3"),
    ("t4", "T4"),
    ("creatinina", "creatinina"),
    ("25-oh", "vitamina D"),
    ("vit d", "vitamina D"),
    ("vit. d", "vitamina D"),
    ("ferro", "ferro"),
    ("ferritina", "ferritina"),
    ("ureia", "ureia"),
    ("uréia", "ureia"),
]

POSSIBLE_CONDITIONS = [
    (["anemia", "hemoglobina baixa"], "possível anemia"),
    (["diabetes", "glicose elevada", "hba1c > 6.5"], "possível diabetes"),
    (["colesterol elevado", "ldl elevado"], "possível dislipidemia"),
    (["tsh elevado", "hipotireoidismo"], "possível hipotireoidismo"),
    (["tsh baixo", "hipertireoidismo"], "possível hipertireoidismo"),
    (["vitamina d baixa", "25-oh < 30"], "possível deficiência de vitamina D"),
    (["ferritina baixa", "ferro baixo"], "possível deficiência de ferro"),
]

DIABETES = "possível diabetes"
HBA1C_HIGH = re.compile(r"hba1c.*?(>|maior).*?6[.,]5")
NON_PRINTABLE = re.compile(r"[^\x20-\x7E\n\r\tÀ-ÿ]")
TEXT_EXTENSIONS = (".txt", ".csv", ".md")
MIN_EXAM_CHARS = 20


class UnsupportedDocument(Exception):
    pass


@dataclass
class HealthIndicators:
    indicators: list[str] = field(default_factory=list)
    possible_conditions: list[str] = field(default_factory=list)
    summary: str = ""


def clean_text(raw: str) -> str:
    # keep ASCII and Latin-1 accents, normalize whitespace
    text = NON_PRINTABLE.sub(" ", raw or "")
    return re.sub(r"\s+", " ", text).strip()


def extract_pdf_text(payload: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(payload))
        pages = [clean_text(page.extract_text() or "") for page in reader.pages]
    except PyPdfError as e:
        logger.warning("unreadable PDF: %s", e)
        raise UnsupportedDocument("Não consegui ler este PDF. Tente exportar o resultado como texto.") from e
    if sum(len(p) for p in pages) < MIN_EXAM_CHARS:
        # scanned exams carry images only
        raise UnsupportedDocument(
            "Este PDF não tem texto selecionável (parece uma imagem). "
            "Cole o resultado com /exame <texto>."
        )
    return "\n\n".join(f"Página {i}: {p}" for i, p in enumerate(pages, 1) if p)


def extract_text(filename: str, payload: bytes) -> str:
    name = (filename or "").lower()
    if name.endswith(".pdf") or payload[:5] == b"%PDF-":
        text = extract_pdf_text(payload)
        logger.info("PDF %s read: %d chars", filename, len(text))
        return text
    if name and not name.endswith(TEXT_EXTENSIONS):
        raise UnsupportedDocument("Formato não suportado. Envie um PDF ou um arquivo de texto (.txt).")
    try:
        raw = payload.decode("utf-8")
    except UnicodeDecodeError:
        raw = payload.decode("latin-1")
    text = clean_text(raw)
    logger.info("document %s read: %d chars", filename, len(text))
    return text


def detect_exam_type(content: str) -> str:
    t = (content or "").lower()
    for exam_type, keywords in EXAM_KEYWORDS.items():
        if any(k in t for k in keywords):
            return exam_type
    return DEFAULT_EXAM_TYPE


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def extract_health_indicators(content: str) -> HealthIndicators:
    t = (content or "").lower()
    indicators = _unique([label for term, label in HEALTH_INDICATORS if term in t])

    conditions = []
    for terms, condition in POSSIBLE_CONDITIONS:
        if any(term in t for term in terms):
            conditions.append(condition)

    if "glicose" in t and ("elevada" in t or "alta" in t):
        conditions.append(DIABETES)
    if "hba1c" in t and HBA1C_HIGH.search(t):
        conditions.append(DIABETES)
    conditions = _unique(conditions)

    summary = f"{len(indicators)} indicadores encontrados"
    if indicators:
        summary += ": " + ", ".join(indicators)
    summary += ". "
    if conditions:
        summary += "Possíveis condições: " + ", ".join(conditions)
    else:
        summary += "Nenhuma condição identificada."
    return HealthIndicators(indicators=indicators, possible_conditions=conditions, summary=summary)
