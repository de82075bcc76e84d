from __future__ import annotations
import html
import re
from dataclasses import dataclass, field
from typing import Optional

ELEVATED = "elevated"
LOW = "low"
NORMAL = "normal"
BULLET = "bullet"
PLAIN = "plain"

STATUS_WORDS = (
    (ELEVATED, ("elevado", "alto", "acima")),
    (LOW, ("baixo", "deficiência", "abaixo")),
    (NORMAL, ("normal", "adequado", "dentro do intervalo")),
)

SECTION_KINDS = (
    ("blood", ("hemograma",)),
    ("hormones", ("tireoid", "hormônio")),
    ("metabolism", ("metabolismo", "glicose")),
    ("lipids", ("lipídio", "colesterol")),
    ("conclusion", ("considera", "final")),
)

SECTION_ICONS = {
    "blood": "🩸",
    "hormones": "🧪",
    "metabolism": "⚡",
    "lipids": "❤️",
    "conclusion": "✅",
    "general": "📄",
}

STATUS_MARKS = {
    ELEVATED: "🔴",
    LOW: "🟡",
    NORMAL: "🟢",
    BULLET: "•",
}
STATUS_LABELS = {ELEVATED: "Elevado", LOW: "Baixo", NORMAL: "Normal"}

BOLD = re.compile(r"\*\*(.*?)\*\*")
CATEGORY = re.compile(r"categoria:\s*([^:]*?)(?:$|\.|:)", re.IGNORECASE)


@dataclass
class Line:
    text: str
    status: str = PLAIN
    exam_name: Optional[str] = None
    category: Optional[str] = None


@dataclass
class Section:
    title: str
    kind: str
    lines: list[Line] = field(default_factory=list)


@dataclass
class FormattedAnalysis:
    introduction: list[Line] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)


def normalize(text: str) -> str:
    t = (text or "").strip().replace("\r\n", "\n")
    t = re.sub(r"(^|[^\n])###", r"\1\n###", t)
    t = re.sub(r"\s*###\s*", "\n### ", t)
    t = re.sub(r"\n{3,}", "\n\n", t)
    return t.strip()


def section_kind(title: str) -> str:
    t = title.lower()
    for kind, words in SECTION_KINDS:
        if any(w in t for w in words):
            return kind
    return "general"


def classify_line(line: str) -> Line:
    raw = line.replace("###", "").strip()
    name_match = BOLD.search(raw)
    exam_name = name_match.group(1).strip() if name_match else None

    category = None
    if "categoria:" in raw.lower():
        cm = CATEGORY.search(raw)
        if cm:
            category = cm.group(1).strip() or None

    lower = raw.lower()
    status = PLAIN
    for candidate, words in STATUS_WORDS:
        if any(w in lower for w in words):
            status = candidate
            break
    else:
        if raw.startswith("•") or raw.startswith("-"):
            status = BULLET

    text = raw
    if exam_name is not None and status in STATUS_LABELS:
        # the name is shown separately as a heading
        text = BOLD.sub("", raw, count=1).strip(" :-—")
    else:
        text = BOLD.sub(r"\1", raw)
    return Line(text=text, status=status, exam_name=exam_name, category=category)


def _content_lines(content: str) -> list[Line]:
    return [classify_line(l) for l in content.split("\n") if l.strip()]


def split_sections(text: str) -> FormattedAnalysis:
    out = FormattedAnalysis()
    t = normalize(text)
    if not t:
        return out

    parts = re.split(r"\n### ", t)
    head = parts[0]
    if head.startswith("### "):
        parts[0] = head[4:]
    else:
        out.introduction = _content_lines(head)
        parts = parts[1:]

    for part in parts:
        if not part.strip():
            continue
        lines = part.strip().split("\n")
        title = lines[0].strip()
        out.sections.append(Section(
            title=title,
            kind=section_kind(title),
            lines=_content_lines("\n".join(lines[1:])),
        ))
    return out


def _render_line(line: Line) -> str:
    text = html.escape(line.text)
    if line.status in STATUS_LABELS:
        head = f"<b>{html.escape(line.exam_name)}</b> " if line.exam_name else ""
        tail = f" <i>[{STATUS_LABELS[line.status]}"
        if line.category:
            tail += f", categoria: {html.escape(line.category)}"
        tail += "]</i>"
        return f"{STATUS_MARKS[line.status]} {head}{text}{tail}"
    if line.status == BULLET:
        return "• " + html.escape(line.text.lstrip("•- ").strip())
    return text


def render_telegram(analysis: FormattedAnalysis) -> str:
    """Telegram HTML (parse_mode="HTML")."""
    blocks = []
    if analysis.introduction:
        blocks.append("\n".join(_render_line(l) for l in analysis.introduction))
    for s in analysis.sections:
        title = f"{SECTION_ICONS.get(s.kind, SECTION_ICONS['general'])} <b>{html.escape(s.title)}</b>"
        body = "\n".join(_render_line(l) for l in s.lines)
        blocks.append(title + ("\n" + body if body else ""))
    return "\n\n".join(blocks)


def format_analysis(text: str) -> str:
    return render_telegram(split_sections(text))


TELEGRAM_LIMIT = 4000


def _pack(parts: list[str], sep: str, limit: int) -> list[str]:
    out, cur = [], ""
    for part in parts:
        if cur and len(cur) + len(sep) + len(part) > limit:
            out.append(cur)
            cur = part
        else:
            cur = f"{cur}{sep}{part}" if cur else part
    if cur:
        out.append(cur)
    return out


def split_message(text: str, limit: int = TELEGRAM_LIMIT) -> list[str]:
    """Chunks of at most `limit` chars, cut at blank lines, then lines, then anywhere."""
    blocks = []
    for block in text.split("\n\n"):
        if len(block) <= limit:
            blocks.append(block)
            continue
        lines = []
        for line in block.split("\n"):
            if len(line) > limit:
                lines.extend(line[i:i + limit] for i in range(0, len(line), limit))
            else:
                lines.append(line)
        blocks.extend(_pack(lines, "\n", limit))
    return _pack(blocks, "\n\n", limit)
