"""Profession suggestions for the intake form"""

from typing import Iterable, Optional

COMMON_PROFESSIONS = (
    "Advogado",
    "Médico",
    "Enfermeiro",
    "Professor",
    "Engenheiro",
    "Contador",
    "Administrador",
    "Psicólogo",
    "Dentista",
    "Fisioterapeuta",
    "Arquiteto",
    "Designer",
    "Programador",
    "Jornalista",
    "Farmacêutico",
    "Veterinário",
    "Nutricionista",
    "Biomédico",
    "Terapeuta Ocupacional",
    "Fonoaudiólogo",
    "Assistente Social",
    "Pedagogo",
    "Economista",
    "Publicitário",
    "Chef",
    "Corretor de Imóveis",
    "Vendedor",
    "Consultor",
    "Analista",
    "Técnico",
)


class ProfessionMatcher:
    """Case-insensitive substring matching over a fixed vocabulary"""

    def __init__(self, vocabulary: Optional[Iterable[str]] = None, limit: int = 5, min_length: int = 2):
        self.vocabulary = tuple(COMMON_PROFESSIONS if vocabulary is None else vocabulary)
        self.limit = limit
        self.min_length = min_length
        self._folded = [(term.casefold(), term) for term in self.vocabulary]

    def suggest(self, text: Optional[str]) -> list[str]:
        """Up to ``limit`` vocabulary entries containing ``text``, in vocabulary order"""
        needle = (text or "").strip().casefold()
        if len(needle) < self.min_length:
            return []

        matches = []
        for folded, term in self._folded:
            if needle in folded:
                matches.append(term)
                if len(matches) == self.limit:
                    break
        return matches
