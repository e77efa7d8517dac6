"""
Vehicle Resolver - Staged lookup of free-text names against the registry.

Decision order (first hit wins):
| Stage            | Rule                                  | Confidence  | found |
|------------------|---------------------------------------|-------------|-------|
| exact            | trimmed name equals a registry name   | 1.0         | yes   |
| case_insensitive | equal ignoring case                   | 0.95        | yes   |
| fuzzy            | edit similarity >= threshold (0.7)    | similarity  | yes   |
| keyword          | token overlap                         | 0.0         | no    |

The keyword stage only ever fills ``alternatives`` so the caller can offer
suggestions; it never marks a query as found.
"""

import logging
from typing import Optional

from .config import Config, MatchSettings
from .duplicates import find_duplicates
from .models import Candidate, MatchResult, MatchType, VehicleRecord
from .normalize import extract_keywords
from .registry import VehicleRegistry
from .similarity import similarity

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0
CASE_INSENSITIVE_CONFIDENCE = 0.95


class VehicleResolver:
    """Resolves raw vehicle names to registry rows."""

    def __init__(self, registry: VehicleRegistry, config: Optional[Config] = None):
        self.registry = registry
        self.settings: MatchSettings = (config or Config()).matching

    def resolve(self, raw_name) -> MatchResult:
        """
        Resolve a raw name through the exact, case-insensitive, fuzzy and
        keyword stages.

        Args:
            raw_name: Vehicle name as typed

        Returns:
            MatchResult; ``found`` is False when only keyword suggestions exist
        """
        query = raw_name if isinstance(raw_name, str) else ""
        result = MatchResult(query=query)
        name = query.strip()
        if not name:
            return result

        # 1. Exact
        vehicle = self.registry.find_by_exact_name(name)
        if vehicle is not None:
            return self._found(result, vehicle, MatchType.EXACT, EXACT_CONFIDENCE)

        # 2. Case-insensitive
        vehicle = self.registry.find_by_case_insensitive_name(name)
        if vehicle is not None:
            return self._found(result, vehicle, MatchType.CASE_INSENSITIVE, CASE_INSENSITIVE_CONFIDENCE)

        all_vehicles = self.registry.get_all()

        # 3. Fuzzy
        fuzzy = self.fuzzy_candidates(name, self.settings.similarity_threshold, all_vehicles)
        if fuzzy:
            best = fuzzy[0]
            result.alternatives = fuzzy[1:1 + self.settings.max_alternatives]
            logger.debug(f"Fuzzy match '{name}' -> '{best.vehicle.name}' ({best.score:.2f})")
            return self._found(result, best.vehicle, MatchType.FUZZY, best.score, all_vehicles)

        # 4. Keyword suggestions only
        result.alternatives = self.keyword_candidates(name, all_vehicles)[:self.settings.max_alternatives]
        return result

    def _found(
        self,
        result: MatchResult,
        vehicle: VehicleRecord,
        match_type: MatchType,
        confidence: float,
        all_vehicles: Optional[list[VehicleRecord]] = None,
    ) -> MatchResult:
        result.found = True
        result.vehicle = vehicle
        result.match_type = match_type
        result.confidence = max(0.0, min(1.0, confidence))

        duplicates = find_duplicates(
            all_vehicles if all_vehicles is not None else self.registry.get_all(),
            vehicle.name,
        )
        if len(duplicates) > 1:
            result.duplicates = duplicates
        return result

    def fuzzy_candidates(
        self,
        name: str,
        threshold: float,
        vehicles: Optional[list[VehicleRecord]] = None,
    ) -> list[Candidate]:
        """
        Score every vehicle by edit similarity.

        Returns:
            Candidates at or above ``threshold``, best first; ties keep
            registry order
        """
        vehicles = vehicles if vehicles is not None else self.registry.get_all()
        scored = []
        for vehicle in vehicles:
            score = similarity(name, vehicle.name)
            if score >= threshold:
                scored.append(Candidate(vehicle=vehicle, score=score, match_type=MatchType.FUZZY))
        return sorted(scored, key=lambda c: c.score, reverse=True)

    def keyword_candidates(self, name: str, vehicles: Optional[list[VehicleRecord]] = None) -> list[Candidate]:
        """
        Score vehicles by shared keywords.

        score = |shared| / max(|query keywords|, |vehicle keywords|)
        """
        stop_words = self.settings.stop_words
        query_keywords = extract_keywords(name, stop_words)
        if not query_keywords:
            return []

        vehicles = vehicles if vehicles is not None else self.registry.get_all()
        scored = []
        for vehicle in vehicles:
            vehicle_keywords = extract_keywords(vehicle.name, stop_words)
            common = [k for k in query_keywords if k in vehicle_keywords]
            if common:
                score = len(common) / max(len(query_keywords), len(vehicle_keywords))
                scored.append(Candidate(
                    vehicle=vehicle,
                    score=score,
                    match_type=MatchType.KEYWORD,
                    common_keywords=tuple(common),
                ))
        return sorted(scored, key=lambda c: c.score, reverse=True)

    def suggest(self, raw_name, limit: Optional[int] = None) -> list[str]:
        """
        Names worth offering when a query did not resolve.

        Fuzzy candidates at the lower suggestion threshold come first, then
        keyword candidates; names are distinct.
        """
        limit = self.settings.max_suggestions if limit is None else limit
        name = raw_name.strip() if isinstance(raw_name, str) else ""
        if not name or limit <= 0:
            return []

        vehicles = self.registry.get_all()
        suggestions: list[str] = []
        candidates = (
            self.fuzzy_candidates(name, self.settings.suggestion_threshold, vehicles)
            + self.keyword_candidates(name, vehicles)
        )
        for candidate in candidates:
            if candidate.vehicle.name not in suggestions:
                suggestions.append(candidate.vehicle.name)
            if len(suggestions) >= limit:
                break
        return suggestions
