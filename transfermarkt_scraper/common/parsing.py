import re
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

# Transfermarkt Link-Muster
_CLUB_ID_RE = re.compile(r"/verein/(\d+)")
_PLAYER_ID_RE = re.compile(r"/(?:spieler|player)/(\d+)")
_COMPETITION_ID_RE = re.compile(r"/wettbewerb/([A-Za-z0-9]+)")
_IMAGE_ID_RE = re.compile(r"/([^/?#]+)\.png")


def clean_text(s: str | None) -> str | None:
    if s is None:
        return None
    s = re.sub(r"\s+", " ", s.replace(" ", " ").strip())
    return s or None


def is_cell_empty(s: str | None) -> bool:
    return s is None or not s.strip() or s.strip() == "-"


def parse_int(s: str | None) -> int | None:
    """Locale-invariante Ganzzahl; Tausenderpunkte werden ignoriert."""
    if is_cell_empty(s):
        return None
    m = re.search(r"-?\d+", s.replace(".", "").replace("'", ""))
    return int(m.group(0)) if m else None


def parse_int_token(s: str | None) -> int | None:
    """Letzte ganze Zahl unter den durch Leerzeichen getrennten Teilen ("20 Teams" -> 20)."""
    if is_cell_empty(s):
        return None
    value = None
    for part in s.replace(" ", " ").split():
        if re.fullmatch(r"-?\d+", part.strip()):
            value = int(part.strip())
    return value


def parse_float(s: str | None) -> float | None:
    if is_cell_empty(s):
        return None
    s = s.replace(" ", "").replace(",", ".")
    m = re.search(r"-?\d+(?:\.\d+)?", s)
    return float(m.group(0)) if m else None


def soup_from_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def club_id_from_href(href: str | None) -> str | None:
    m = _CLUB_ID_RE.search(href or "")
    return m.group(1) if m else None


def player_id_from_href(href: str | None) -> str | None:
    # Examples: /lionel-messi/profil/spieler/28003
    m = _PLAYER_ID_RE.search(href or "")
    return m.group(1) if m else None


def competition_id_from_href(href: str | None) -> str | None:
    # Examples: /laliga/startseite/wettbewerb/ES1, /copa-del-rey/startseite/pokalwettbewerb/CDR
    if not href:
        return None
    m = _COMPETITION_ID_RE.search(href) or re.search(r"/pokalwettbewerb/([A-Za-z0-9]+)", href)
    return m.group(1) if m else None


def image_id_from_url(url: str | None) -> str | None:
    """Dateiname eines Flaggen-/Wappenbildes ohne Endung (".../verysmall/157.png?lm=1" -> "157")."""
    m = _IMAGE_ID_RE.search(url or "")
    return m.group(1) if m else None


def link_path(link: str | None) -> str:
    """Pfad eines (evtl. absoluten) Links ohne Query und ohne Slash am Ende, lowercase."""
    if not link:
        return ""
    return urlsplit(link.strip()).path.rstrip("/").lower()
