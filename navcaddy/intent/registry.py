"""
Intent registry.

Single source of truth for the supported intents: display names, entity
slots, default routing targets and example phrases. The classifier prompt and
the routing orchestrator both read from here.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .models import EntityType, ExtractedEntities, IntentType, Module, RoutingTarget


@dataclass(frozen=True)
class IntentSchema:
    intent_type: IntentType
    display_name: str
    description: str
    default_routing_target: Optional[RoutingTarget]
    requires_navigation: bool = True
    required_entities: FrozenSet[EntityType] = frozenset()
    optional_entities: FrozenSet[EntityType] = frozenset()
    example_phrases: Tuple[str, ...] = field(default_factory=tuple)


def _target(module: Module, screen: str, **parameters) -> RoutingTarget:
    return RoutingTarget(module=module, screen=screen, parameters=parameters)


_SCHEMAS: Tuple[IntentSchema, ...] = (
    IntentSchema(
        intent_type=IntentType.CLUB_ADJUSTMENT,
        display_name="Club Adjustment",
        description="Adjust club distances or yardage expectations",
        default_routing_target=_target(Module.CADDY, "ClubAdjustmentScreen"),
        required_entities=frozenset({EntityType.CLUB}),
        optional_entities=frozenset({EntityType.YARDAGE}),
        example_phrases=(
            "My 7-iron feels long today",
            "I need to adjust my driver distance",
            "Update my pitching wedge to 120 yards",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.RECOVERY_CHECK,
        display_name="Recovery Check",
        description="Check recovery status and readiness",
        default_routing_target=_target(Module.RECOVERY, "RecoveryOverviewScreen"),
        optional_entities=frozenset({EntityType.FATIGUE, EntityType.PAIN}),
        example_phrases=(
            "How's my recovery looking?",
            "Am I ready to play today?",
            "What's my readiness score?",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.SHOT_RECOMMENDATION,
        display_name="Shot Recommendation",
        description="Get shot advice based on current situation",
        default_routing_target=_target(Module.CADDY, "LiveCaddyScreen", expandStrategy=True),
        optional_entities=frozenset({EntityType.CLUB, EntityType.YARDAGE, EntityType.LIE, EntityType.WIND}),
        example_phrases=(
            "What club should I hit?",
            "150 yards into the wind, what's the play?",
            "Recommend a shot from the rough",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.SCORE_ENTRY,
        display_name="Score Entry",
        description="Enter or update score for a hole",
        default_routing_target=_target(Module.CADDY, "ScoreEntryScreen"),
        optional_entities=frozenset({EntityType.HOLE_NUMBER, EntityType.SCORE_CONTEXT}),
        example_phrases=(
            "I got a birdie on this hole",
            "Enter score for hole 7",
            "I made a 5 on the last hole",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.PATTERN_QUERY,
        display_name="Pattern Query",
        description="Ask about historical miss patterns or tendencies",
        default_routing_target=None,
        requires_navigation=False,
        optional_entities=frozenset({EntityType.CLUB, EntityType.LIE}),
        example_phrases=(
            "What are my miss patterns with 7-iron?",
            "Do I slice when I'm under pressure?",
            "Am I pushing my irons lately?",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.DRILL_REQUEST,
        display_name="Drill Request",
        description="Request a practice drill or training exercise",
        default_routing_target=_target(Module.COACH, "DrillScreen"),
        optional_entities=frozenset({EntityType.CLUB, EntityType.DRILL_TYPE}),
        example_phrases=(
            "Give me a drill for my slice",
            "What drill can fix my push?",
            "Recommend a chipping drill",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.WEATHER_CHECK,
        display_name="Weather Check",
        description="Check current or forecast weather conditions",
        default_routing_target=_target(Module.CADDY, "LiveCaddyScreen", expandWeather=True),
        example_phrases=(
            "What's the weather looking like?",
            "How's the wind today?",
            "Is it going to rain?",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.STATS_LOOKUP,
        display_name="Stats Lookup",
        description="Look up statistics and performance data",
        default_routing_target=_target(Module.CADDY, "StatsScreen"),
        optional_entities=frozenset({EntityType.STAT_TYPE, EntityType.CLUB}),
        example_phrases=(
            "Show my stats",
            "What's my average score?",
            "Show my fairways hit percentage",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.ROUND_START,
        display_name="Round Start",
        description="Start a new round of golf",
        default_routing_target=_target(Module.CADDY, "RoundSetupScreen"),
        optional_entities=frozenset({EntityType.COURSE_NAME}),
        example_phrases=(
            "Start a new round",
            "I'm playing at Pebble Beach today",
            "Let's tee off",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.ROUND_END,
        display_name="Round End",
        description="End the current round and view summary",
        default_routing_target=_target(Module.CADDY, "RoundSummaryScreen"),
        example_phrases=(
            "Finish this round",
            "I'm done playing",
            "Show me the round summary",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.EQUIPMENT_INFO,
        display_name="Equipment Info",
        description="Get information about equipment and bag contents",
        default_routing_target=_target(Module.SETTINGS, "EquipmentScreen"),
        optional_entities=frozenset({EntityType.EQUIPMENT_TYPE, EntityType.CLUB}),
        example_phrases=(
            "What's in my bag?",
            "Show my club specs",
            "Tell me about my driver",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.COURSE_INFO,
        display_name="Course Info",
        description="Get course information and hole details",
        default_routing_target=_target(Module.CADDY, "CourseInfoScreen"),
        optional_entities=frozenset({EntityType.COURSE_NAME, EntityType.HOLE_NUMBER}),
        example_phrases=(
            "Tell me about this hole",
            "What's the yardage on hole 7?",
            "Show the course layout",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.SETTINGS_CHANGE,
        display_name="Settings Change",
        description="Change app settings or preferences",
        default_routing_target=_target(Module.SETTINGS, "SettingsScreen"),
        optional_entities=frozenset({EntityType.SETTING_KEY}),
        example_phrases=(
            "Change my settings",
            "Turn on notifications",
            "Change units to metric",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.HELP_REQUEST,
        display_name="Help Request",
        description="Get help or instructions about the app",
        default_routing_target=None,
        requires_navigation=False,
        example_phrases=(
            "Help me",
            "How do I use this?",
            "What can you do?",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.FEEDBACK,
        display_name="Feedback",
        description="Provide feedback about the app",
        default_routing_target=_target(Module.SETTINGS, "FeedbackScreen"),
        optional_entities=frozenset({EntityType.FEEDBACK_TEXT}),
        example_phrases=(
            "I have feedback",
            "Report a problem",
            "I found a bug",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.BAILOUT_QUERY,
        display_name="Bailout Query",
        description="Ask where to aim for safe miss or bailout area",
        default_routing_target=_target(Module.CADDY, "LiveCaddyScreen", expandStrategy=True, highlightBailout=True),
        example_phrases=(
            "Where's the bailout?",
            "Where should I miss?",
            "What's the safe play?",
        ),
    ),
    IntentSchema(
        intent_type=IntentType.READINESS_CHECK,
        display_name="Readiness Check",
        description="Check readiness score and how it affects strategy",
        default_routing_target=_target(Module.CADDY, "LiveCaddyScreen", expandReadiness=True),
        example_phrases=(
            "What's my readiness?",
            "Am I ready for this shot?",
            "Should I play conservative today?",
        ),
    ),
)

SCHEMAS: Dict[IntentType, IntentSchema] = {schema.intent_type: schema for schema in _SCHEMAS}


def get_schema(intent_type: IntentType) -> IntentSchema:
    try:
        return SCHEMAS[intent_type]
    except KeyError:
        raise KeyError(f"Intent {intent_type} is not registered")


def all_schemas() -> List[IntentSchema]:
    return list(_SCHEMAS)


def missing_entities(intent_type: IntentType, entities: ExtractedEntities) -> List[EntityType]:
    """Required entity slots the extraction left empty, in declaration order."""
    schema = get_schema(intent_type)
    return [e for e in EntityType if e in schema.required_entities and not entities.has(e)]
