"""
Topic and Theme Catalog.

Two vocabularies meet here:
- practice topics: what learners take tests on (``priority-rules``, ...)
- themes: what each bank question is about (``warning-signs``, ...)

Each practice topic lists the themes it trains, so matching a question to a
weak topic is a set lookup rather than a fuzzy string comparison. Themes in
the same family (the sign types) stand in for one another when checking
mandatory coverage.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Topic:
    """A practice topic the learner can be recommended."""

    id: str
    name: str
    category: str
    themes: frozenset[str] = frozenset()


@dataclass(frozen=True)
class Theme:
    """A question theme; mandatory themes must appear in every assessment."""

    id: str
    name: str
    mandatory: bool = False
    family: str | None = None


# ============================================================================
# Defaults
# ============================================================================

DEFAULT_THEMES: tuple[Theme, ...] = (
    Theme("hazard-perception", "Hazard Perception", mandatory=True),
    Theme("priority-rules", "Priority Rules", mandatory=True),
    Theme("speed-limits", "Speed Limits", mandatory=True),
    Theme("traffic-lights", "Traffic Lights", mandatory=True),
    Theme("traffic-signs", "Traffic Signs", mandatory=True, family="signs"),
    Theme("warning-signs", "Warning Signs", mandatory=True, family="signs"),
    Theme("prohibitory-signs", "Prohibitory Signs", mandatory=True, family="signs"),
    Theme("road-markings", "Road Markings", mandatory=True),
    Theme("roundabout-rules", "Roundabout Rules", mandatory=True),
    Theme("overtaking", "Overtaking", mandatory=True),
    Theme("pedestrian-crossings", "Pedestrian Crossings", mandatory=True),
    Theme("construction-zones", "Construction Zones", mandatory=True),
    Theme("weather-conditions", "Weather Conditions", mandatory=True),
    Theme("safety-rules", "Safety Rules", mandatory=True),
    Theme("lane-changing", "Lane Changing", mandatory=True),
    Theme("parking-rules", "Parking Rules"),
    Theme("motorway-rules", "Motorway Rules"),
    Theme("bicycle-interactions", "Bicycle Interactions"),
    Theme("tram-interactions", "Tram Interactions"),
    Theme("vehicle-knowledge", "Vehicle Knowledge"),
    Theme("environmental-zones", "Environmental Zones"),
    Theme("technology-safety", "Technology & Safety"),
    Theme("alcohol-drugs", "Alcohol & Drugs"),
    Theme("fatigue-rest", "Fatigue & Rest"),
    Theme("emergency-procedures", "Emergency Procedures"),
)


def _topic(topic_id: str, name: str, category: str, *themes: str) -> Topic:
    return Topic(topic_id, name, category, frozenset(themes or (topic_id,)))


DEFAULT_TOPICS: tuple[Topic, ...] = (
    _topic("traffic-lights-signals", "Traffic Lights & Signals", "signals", "traffic-lights"),
    _topic("priority-rules", "Priority & Right of Way", "rules"),
    _topic("hazard-perception", "Hazard Perception", "safety"),
    _topic("speed-safety", "Speed & Safety", "safety", "speed-limits", "safety-rules"),
    _topic("bicycle-interactions", "Bicycle Interactions", "interactions"),
    _topic("roundabout-rules", "Roundabout Rules", "rules"),
    _topic("tram-interactions", "Tram Interactions", "interactions"),
    _topic("pedestrian-crossings", "Pedestrian Crossings", "interactions"),
    _topic("construction-zones", "Construction Zones", "zones"),
    _topic("weather-conditions", "Weather Conditions", "safety"),
    _topic("road-signs", "Road Signs", "signs", "traffic-signs", "warning-signs", "prohibitory-signs"),
    _topic("motorway-rules", "Motorway Rules", "rules", "motorway-rules", "lane-changing", "overtaking"),
    _topic("vehicle-knowledge", "Vehicle Knowledge", "vehicles"),
    _topic("parking-rules", "Parking Rules", "rules"),
    _topic("environmental", "Environmental Zones", "zones", "environmental-zones"),
    _topic("technology-safety", "Technology & Safety", "technology"),
    _topic("alcohol-drugs", "Alcohol & Drugs", "safety"),
    _topic("fatigue-rest", "Fatigue & Rest", "safety"),
    _topic("emergency-procedures", "Emergency Procedures", "safety"),
    _topic("insight-practice", "Insight Practice", "advanced", "hazard-perception", "safety-rules"),
    _topic(
        "traffic-rules-signs",
        "Traffic Rules & Signs",
        "rules",
        "traffic-signs",
        "warning-signs",
        "prohibitory-signs",
        "road-markings",
    ),
)

DEFAULT_BEGINNER_PATH: tuple[str, ...] = (
    "traffic-rules-signs",
    "priority-rules",
    "hazard-perception",
    "speed-safety",
)


@dataclass
class TopicCatalog:
    """Lookup tables over topics and themes, built once."""

    topics: tuple[Topic, ...] = DEFAULT_TOPICS
    themes: tuple[Theme, ...] = DEFAULT_THEMES
    beginner_path: tuple[str, ...] = DEFAULT_BEGINNER_PATH
    _topics_by_id: dict[str, Topic] = field(init=False, repr=False)
    _themes_by_id: dict[str, Theme] = field(init=False, repr=False)
    _families: dict[str, tuple[str, ...]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._topics_by_id = {topic.id: topic for topic in self.topics}
        self._themes_by_id = {theme.id: theme for theme in self.themes}
        families: dict[str, list[str]] = {}
        for theme in self.themes:
            if theme.family:
                families.setdefault(theme.family, []).append(theme.id)
        self._families = {name: tuple(ids) for name, ids in families.items()}
        for topic_id in self.beginner_path:
            if topic_id not in self._topics_by_id:
                raise ValueError(f"Beginner path topic not in catalog: {topic_id}")

    # ========================================
    # Topics
    # ========================================

    @property
    def topic_ids(self) -> list[str]:
        return [topic.id for topic in self.topics]

    def get_topic(self, topic_id: str) -> Topic | None:
        return self._topics_by_id.get(topic_id)

    def topic_name(self, topic_id: str) -> str:
        topic = self._topics_by_id.get(topic_id)
        if topic:
            return topic.name
        return topic_id.replace("-", " ").title()

    def topic_themes(self, topic_id: str) -> frozenset[str]:
        """Themes trained by a topic; unknown topic ids map to themselves."""
        topic = self._topics_by_id.get(topic_id)
        if topic is None:
            return frozenset({topic_id})
        return topic.themes

    def beginner_index(self, topic_id: str) -> int | None:
        try:
            return self.beginner_path.index(topic_id)
        except ValueError:
            return None

    # ========================================
    # Themes
    # ========================================

    @property
    def mandatory_themes(self) -> list[str]:
        return [theme.id for theme in self.themes if theme.mandatory]

    def theme_name(self, theme_id: str) -> str:
        theme = self._themes_by_id.get(theme_id)
        return theme.name if theme else theme_id.replace("-", " ").title()

    def expand_themes(self, theme_ids: Iterable[str]) -> frozenset[str]:
        """Add every family sibling of the given themes."""
        expanded = set(theme_ids)
        for theme_id in list(expanded):
            theme = self._themes_by_id.get(theme_id)
            if theme and theme.family:
                expanded.update(self._families[theme.family])
        return frozenset(expanded)


DEFAULT_CATALOG = TopicCatalog()
