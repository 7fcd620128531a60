"""
Species Tracking

Groups the living population into species by genetic similarity and
follows each species across updates: population history, trend, average
fitness and a descriptive name ("Swift Hunters", "Gentle Browsers").

Clustering is greedy leader clustering: each creature joins the first
cluster whose representative is within `threshold` genetic distance,
otherwise it founds a new cluster. Clusters are matched to the previous
update's species by representative distance so ids stay stable.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .creature import Creature
from .genetics import (
    Genetics,
    calculate_genetic_distance,
    color_description,
    describe_genetics,
    genetics_color,
)


@dataclass
class SpeciesInfo:
    """A tracked species."""
    id: str
    name: str
    representative: Genetics
    population: int = 0
    average_fitness: float = 0.0
    average_generation: float = 0.0
    color: str = ""
    description: str = ""
    first_seen: int = 0
    last_seen: int = 0
    trend: str = "stable"      # growing / stable / declining / extinct
    extinct: bool = False

    # (tick, population) samples
    history: List[Tuple[int, int]] = field(default_factory=list)


def generate_species_name(genetics: Genetics) -> str:
    """Adjective from body and temperament, noun from diet."""
    if genetics.size > 1.3:
        adjective = "Giant"
    elif genetics.size > 1.1:
        adjective = "Large"
    elif genetics.size < 0.7:
        adjective = "Tiny"
    elif genetics.size < 0.9:
        adjective = "Small"
    elif genetics.speed > 1.2:
        adjective = "Swift"
    elif genetics.speed < 0.8:
        adjective = "Slow"
    elif genetics.aggression > 0.7:
        adjective = "Fierce"
    elif genetics.aggression < 0.3:
        adjective = "Gentle"
    elif genetics.sociability > 0.7:
        adjective = "Social"
    elif genetics.sociability < 0.3:
        adjective = "Solitary"
    else:
        adjective = "Common"

    if genetics.meat_preference > 0.7:
        noun = "Hunters"
    elif genetics.plant_preference > 0.7:
        noun = "Browsers"
    else:
        noun = "Foragers"

    return f"{adjective} {noun}"


def population_trend(previous: int, current: int) -> str:
    if current == 0:
        return "extinct"
    if previous == 0:
        return "growing"
    change = (current - previous) / previous
    if change > 0.1:
        return "growing"
    if change < -0.1:
        return "declining"
    return "stable"


def cluster_by_genetics(creatures: Sequence[Creature], threshold: float) -> List[List[Creature]]:
    """Greedy leader clustering; the first member of each group is its leader."""
    groups: List[List[Creature]] = []
    for creature in creatures:
        for group in groups:
            if calculate_genetic_distance(creature.genetics, group[0].genetics) < threshold:
                group.append(creature)
                break
        else:
            groups.append([creature])
    return groups


class SpeciesTracker:
    """
    Keeps species identities stable across population snapshots.

    USAGE:
        tracker = SpeciesTracker()
        tracker.update(world.get_creatures(), tick)
        for species in tracker.get_species():
            print(species.name, species.population)
    """

    def __init__(self, threshold: float = 0.3, history_length: int = 200):
        self.threshold = threshold
        self.history_length = history_length
        self.species: Dict[str, SpeciesInfo] = {}
        self._next_id = 0

    def update(self, creatures: Sequence[Creature], tick: int) -> List[SpeciesInfo]:
        """
        Re-cluster the living population.

        Args:
            creatures: Current population (dead creatures are ignored)
            tick: Simulation tick of the snapshot

        Returns:
            Living species after the update
        """
        living = [c for c in creatures if c.is_alive]
        groups = cluster_by_genetics(living, self.threshold)

        unmatched = {sid: s for sid, s in self.species.items() if not s.extinct}
        seen = set()

        # Largest groups claim their closest previous species first
        for group in sorted(groups, key=len, reverse=True):
            leader = group[0].genetics
            species = self._match(leader, unmatched)
            if species is None:
                species = self._create_species(leader, tick)
            else:
                del unmatched[species.id]
            self._record(species, group, tick)
            seen.add(species.id)

        for species in unmatched.values():
            species.trend = "extinct"
            species.extinct = True
            species.population = 0
            self._append_history(species, tick, 0)
            logger.debug(f"[Species] {species.name} ({species.id}) went extinct at tick {tick}")

        return [self.species[sid] for sid in seen]

    def _match(self, genetics: Genetics, candidates: Dict[str, SpeciesInfo]) -> Optional[SpeciesInfo]:
        best = None
        best_distance = self.threshold
        for species in candidates.values():
            distance = calculate_genetic_distance(genetics, species.representative)
            if distance < best_distance:
                best, best_distance = species, distance
        return best

    def _create_species(self, genetics: Genetics, tick: int) -> SpeciesInfo:
        species_id = f"species_{self._next_id}"
        self._next_id += 1
        species = SpeciesInfo(
            id=species_id,
            name=generate_species_name(genetics),
            representative=genetics.copy(),
            first_seen=tick,
        )
        self.species[species_id] = species
        logger.debug(f"[Species] New species {species.name} ({species_id}) at tick {tick}")
        return species

    def _record(self, species: SpeciesInfo, group: List[Creature], tick: int):
        leader = group[0].genetics
        species.trend = population_trend(species.population, len(group))
        species.population = len(group)
        species.representative = leader.copy()
        species.average_fitness = sum(c.stats.fitness for c in group) / len(group)
        species.average_generation = sum(c.generation for c in group) / len(group)
        species.color = genetics_color(leader)
        species.description = f"{color_description(leader)}; {describe_genetics(leader)}"
        species.last_seen = tick
        self._append_history(species, tick, len(group))

    def _append_history(self, species: SpeciesInfo, tick: int, population: int):
        species.history.append((tick, population))
        if len(species.history) > self.history_length:
            del species.history[:-self.history_length]

    def get_species(self, include_extinct: bool = False) -> List[SpeciesInfo]:
        """Species sorted by population, largest first."""
        result = [s for s in self.species.values() if include_extinct or not s.extinct]
        return sorted(result, key=lambda s: s.population, reverse=True)

    @property
    def species_count(self) -> int:
        return sum(1 for s in self.species.values() if not s.extinct)

    def dominant_species(self) -> Optional[SpeciesInfo]:
        living = self.get_species()
        return living[0] if living else None
