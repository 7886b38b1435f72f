"""Talk block inside an event's free-text body."""

import re
from dataclasses import dataclass
from typing import Optional

BLOCK_HEADER = "Nextcloud Talk"
HELP_URL_MARKER = "/talk/join_a_call_or_chat_as_guest.html"
DEFAULT_SEARCH_LINES = 40


@dataclass(frozen=True)
class BlockLabels:
    """Localized text of the Talk block."""

    join: str
    password: str
    help_question: str
    help_url: str


LANGUAGE_PROFILES = {
    "en": BlockLabels(
        join="Join the meeting now:",
        password="Password:",
        help_question="Need help?",
        help_url="https://docs.nextcloud.com/server/latest/user_manual/en/talk/join_a_call_or_chat_as_guest.html",
    ),
    "de": BlockLabels(
        join="Jetzt an der Besprechung teilnehmen :",
        password="Passwort:",
        help_question="Benoetigen Sie Hilfe?",
        help_url="https://docs.nextcloud.com/server/latest/user_manual/de/talk/join_a_call_or_chat_as_guest.html",
    ),
    "fr": BlockLabels(
        join="Rejoindre la reunion maintenant :",
        password="Mot de passe :",
        help_question="Besoin d'aide ?",
        help_url="https://docs.nextcloud.com/server/latest/user_manual/fr/talk/join_a_call_or_chat_as_guest.html",
    ),
}


def labels_for(language: Optional[str]) -> BlockLabels:
    """Labels for a language code such as "de" or "de-AT"; English otherwise."""
    code = (language or "en").strip().lower().replace("_", "-").split("-")[0]
    return LANGUAGE_PROFILES.get(code, LANGUAGE_PROFILES["en"])


# Only CR LF and LF break lines; other separators (e.g. vertical tab) stay inside a line.
_LINE_BREAK = re.compile(r"(\r\n|\n)")


def _newline_of(body: str) -> str:
    return "\r\n" if "\r\n" in body else "\n"


def _is_blank(text: str) -> bool:
    return not text.strip()


def _split_lines(body: str) -> list[tuple[str, str]]:
    """Split into (text, line break) pairs; joining them gives back the body."""
    parts = _LINE_BREAK.split(body)
    return [
        (parts[index], parts[index + 1] if index + 1 < len(parts) else "")
        for index in range(0, len(parts), 2)
    ]


def _join(lines: list[tuple[str, str]]) -> str:
    return "".join(text + line_break for text, line_break in lines)


def _join_without_final_break(lines: list[tuple[str, str]]) -> str:
    if not lines:
        return ""
    return _join(lines[:-1]) + lines[-1][0]


def _find_block(lines: list[str], search_lines: int) -> Optional[tuple[int, int]]:
    for header_index, line in enumerate(lines):
        if line.strip() != BLOCK_HEADER:
            continue
        last = min(len(lines), header_index + 1 + search_lines)
        for index in range(header_index + 1, last):
            if HELP_URL_MARKER in lines[index]:
                return header_index, index
    return None


def remove_block(body: Optional[str], search_lines: int = DEFAULT_SEARCH_LINES) -> Optional[str]:
    """
    Remove an existing Talk block from a body.

    The block runs from a line reading exactly the header to the first line
    (within ``search_lines`` lines) containing the help URL. Blank lines
    next to it collapse into a single separator; text outside the block is
    kept as is. Bodies without a complete block are returned unchanged.
    """
    if not body:
        return body

    lines = _split_lines(body)
    span = _find_block([text for text, _ in lines], search_lines)
    if span is None:
        return body

    start, end = span
    while start > 0 and _is_blank(lines[start - 1][0]):
        start -= 1
    while end + 1 < len(lines) and _is_blank(lines[end + 1][0]):
        end += 1

    prefix = lines[:start]
    suffix = lines[end + 1:]
    if not prefix:
        return _join(suffix)
    if not suffix:
        return _join_without_final_break(prefix)
    return _join(prefix) + _newline_of(body) + _join(suffix)


def build_block(room_url: str, password: Optional[str], language: Optional[str] = None) -> list[str]:
    """Lines of a fresh Talk block."""
    labels = labels_for(language)
    lines = [BLOCK_HEADER, "", labels.join, room_url or "", ""]
    if password and password.strip():
        lines.extend([f"{labels.password} {password.strip()}", ""])
    lines.extend([labels.help_question, "", labels.help_url])
    return lines


def upsert_block(
    body: Optional[str],
    room_url: str,
    password: Optional[str],
    language: Optional[str] = None,
    search_lines: int = DEFAULT_SEARCH_LINES,
) -> str:
    """Replace (or append) the Talk block; applying it twice changes nothing."""
    body = body or ""
    newline = _newline_of(body)
    remaining = _split_lines(remove_block(body, search_lines) or "")
    while remaining and _is_blank(remaining[-1][0]):
        remaining.pop()
    block = newline.join(build_block(room_url, password, language))

    if not remaining:
        return block
    return _join_without_final_break(remaining) + newline + newline + block


def build_initial_description(password: Optional[str], language: Optional[str] = None) -> str:
    """Room description used at creation time: only the password line, if any."""
    if not password or not password.strip():
        return ""
    return f"{labels_for(language).password} {password.strip()}"


def description_payload(body: Optional[str]) -> str:
    """Room description mirrored from the event body."""
    return (body or "").strip()
