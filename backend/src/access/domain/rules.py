"""Règles d'admission par domaine email."""
import re
from typing import Iterable, Optional, Tuple

from src.access.constants import BLOCKED_EMAIL_DOMAINS, GATED_ROUTER_SEGMENTS
from src.config import settings

_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
DOMAIN_RE = re.compile(rf"^{_LABEL}(?:\.{_LABEL})+$")
LOCAL_PART_RE = re.compile(r"^[a-z0-9!#$%&'*+/=?^_`{|}~.-]{1,64}$")
PATH_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")

def normalize_email(email: str) -> str:
    return email.strip().lower()

def extract_domain(email: str) -> Optional[str]:
    """Retourne le domaine d'une adresse normalisée, ou None si l'adresse est invalide."""
    if email.count("@") != 1:
        return None
    local, domain = email.split("@")
    if not LOCAL_PART_RE.match(local) or not DOMAIN_RE.match(domain):
        return None
    return domain

def is_blocked_domain(domain: str) -> bool:
    return domain in BLOCKED_EMAIL_DOMAINS

def is_internal_domain(domain: str, internal_domains: Iterable[str]) -> bool:
    return domain in {d.strip().lower() for d in internal_domains}

def gated_path_prefixes(api_prefix: Optional[str] = None) -> Tuple[str, ...]:
    base = (api_prefix if api_prefix is not None else settings.API_V1_PREFIX).rstrip("/")
    return tuple(f"{base}/{segment}/" for segment in GATED_ROUTER_SEGMENTS)

def is_gated_path(path: str, api_prefix: Optional[str] = None) -> bool:
    """Vrai si `path` désigne une ressource protégée précise (pas de '..', pas de requête)."""
    for prefix in gated_path_prefixes(api_prefix):
        if path.startswith(prefix):
            segments = path[len(prefix):].split("/")
            return bool(segments) and all(
                PATH_SEGMENT_RE.match(s) and s not in (".", "..") for s in segments
            )
    return False
