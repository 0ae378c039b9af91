from typing import Optional


class ProviderError(Exception):
    """Base per ogni errore di un provider upstream (fixtures, xG, odds)."""


class ProviderUnreachable(ProviderError):
    """Errore di rete o timeout persistente oltre i tentativi massimi."""


class ProviderRejected(ProviderError):
    """Il provider ha risposto con uno status HTTP non 2xx."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ProviderRejected):
    """Sollevata quando il rate limit (HTTP 429) persiste dopo tutti i tentativi di retry."""


class MalformedPayload(ProviderError):
    """Risposta non JSON o con struttura inattesa."""


class ScrapeStructureNotFound(ProviderError):
    """Blob JSON incorporato nella pagina HTML assente o non parsabile."""


class NoMatchFound(ProviderError):
    """Dati scaricati correttamente ma nessuna partita corrispondente alla fixture."""
