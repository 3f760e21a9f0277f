"""
Cross-Reference Resolver

Joins credentials, commission rules and game settings with the games and
agents they point at. Id maps are built once per load; a dangling id
resolves to a placeholder instead of failing.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from portal.schemas.catalog import CredentialResponse, GameSettingResponse
from portal.schemas.commission import CommissionRuleResponse


logger = logging.getLogger(__name__)

UNKNOWN_GAME = "Unknown Game"
UNKNOWN_AGENT = "Unknown Agent"
UNASSIGNED = "Unassigned"
ALL_GAMES = "All Games"


def build_index(records: Iterable[Mapping[str, Any]], key: str = "id") -> Dict[str, Mapping[str, Any]]:
    """Map id -> record. The first record wins when an id repeats."""
    index: Dict[str, Mapping[str, Any]] = {}
    for record in records:
        record_id = record.get(key)
        if record_id is not None and record_id not in index:
            index[record_id] = record
    return index


class ReferenceIndex:
    """Id lookups over the game and agent collections of one load cycle."""

    def __init__(
        self,
        games: Iterable[Mapping[str, Any]] = (),
        agents: Iterable[Mapping[str, Any]] = (),
    ):
        self.games = build_index(games)
        self.agents = build_index(agents)

    def game_title(self, game_id: Optional[str], default: str = UNKNOWN_GAME) -> str:
        game = self.games.get(game_id) if game_id is not None else None
        if game is None or not game.get("title"):
            logger.debug("Game %s not found, using %r", game_id, default)
            return default
        return game["title"]

    def agent_name(self, agent_id: Optional[str], default: str = UNKNOWN_AGENT) -> str:
        agent = self.agents.get(agent_id) if agent_id is not None else None
        if agent is None or not agent.get("name"):
            logger.debug("Agent %s not found, using %r", agent_id, default)
            return default
        return agent["name"]


def resolve_credentials(
    credentials: Iterable[Mapping[str, Any]],
    index: ReferenceIndex,
) -> List[CredentialResponse]:
    """Attach game_title and agent_name to each credential."""
    return [
        CredentialResponse.model_validate({
            **credential,
            "game_title": index.game_title(credential.get("game_id")),
            "agent_name": index.agent_name(credential.get("assigned_to"), default=UNASSIGNED),
        })
        for credential in credentials
    ]


def rule_game_title(game_id: Optional[str], index: ReferenceIndex) -> str:
    """A rule without a game is the agent's fallback and covers all games."""
    if game_id is None:
        return ALL_GAMES
    return index.game_title(game_id)


def resolve_commission_rules(
    rules: Iterable[Mapping[str, Any]],
    index: ReferenceIndex,
) -> List[CommissionRuleResponse]:
    """Attach agent_name and game_title to each commission rule."""
    return [
        CommissionRuleResponse.model_validate({
            **rule,
            "agent_name": index.agent_name(rule.get("agent_id")),
            "game_title": rule_game_title(rule.get("game_id"), index),
        })
        for rule in rules
    ]


def resolve_game_settings(
    settings: Iterable[Mapping[str, Any]],
    index: ReferenceIndex,
) -> List[GameSettingResponse]:
    return [
        GameSettingResponse.model_validate({**setting, "game_title": index.game_title(setting.get("game_id"))})
        for setting in settings
    ]


def search_games(games: Iterable[Mapping[str, Any]], term: Optional[str]) -> List[Mapping[str, Any]]:
    """Case-insensitive match of term against title or description."""
    games = list(games)
    needle = (term or "").strip().lower()
    if not needle:
        return games
    return [
        game for game in games
        if needle in (game.get("title") or "").lower()
        or needle in (game.get("description") or "").lower()
    ]
