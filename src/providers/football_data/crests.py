from __future__ import annotations

from typing import Optional

FLAG_CDN = "https://flagcdn.com/48x36/{code}.png"

# parola chiave nel nome squadra -> codice paese (flagcdn)
_TEAM_KEYWORDS = {
    "Manchester": "gb", "Liverpool": "gb", "Chelsea": "gb", "Arsenal": "gb",
    "Man United": "gb", "Tottenham": "gb",
    "Bayern": "de", "Dortmund": "de", "Leipzig": "de", "Gladbach": "de",
    "Frankfurt": "de", "Leverkusen": "de",
    "Real": "es", "Barcelona": "es", "Atletico": "es", "Sevilla": "es",
    "Valencia": "es", "Villarreal": "es",
    "Juventus": "it", "Inter": "it", "Milan": "it", "Napoli": "it",
    "Roma": "it", "Lazio": "it",
    "PSG": "fr", "Marseille": "fr", "Monaco": "fr", "Lyon": "fr",
    "Rennes": "fr", "Nice": "fr",
}

_COUNTRIES = {
    "England": "gb", "Germany": "de", "Spain": "es", "Italy": "it", "France": "fr",
    "USA": "us", "Turkey": "tr", "Australia": "au", "Belgium": "be", "Brazil": "br",
    "China": "cn", "Denmark": "dk", "Japan": "jp", "Netherlands": "nl",
    "Norway": "no", "Sweden": "se",
}


def flag_code(team: str) -> str:
    for keyword, code in _TEAM_KEYWORDS.items():
        if keyword in team:
            return code
    for country, code in _COUNTRIES.items():
        if country in team:
            return code
    return "eu"


def team_logo(team: str, crest: Optional[str] = None) -> str:
    """Stemma del provider se presente, altrimenti bandiera dedotta dal nome."""
    if crest:
        return crest
    return FLAG_CDN.format(code=flag_code(team or ""))


__all__ = ["team_logo", "flag_code"]
