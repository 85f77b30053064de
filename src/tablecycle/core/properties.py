"""
Descriptive payload that lives on every Table.

* Opaque to the status engine: carried through unchanged, never inspected.
* Accepts the camelCase spellings the clients send (``gameType``, ``buyInMin``).
* Unknown keys are kept as extras so nothing the client sent is lost.
"""

from typing import Any, List

from pydantic import AliasChoices, BaseModel, Field


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class TableDetails(BaseModel):
    name: str | None = None
    type: str | None = None
    game_type: str | None = Field(None, validation_alias=_alias("game_type", "gameType"))
    table_size: int | str | None = Field(
        None, validation_alias=_alias("table_size", "tableSize")
    )
    location: str | None = None
    address: str = ""
    description: str = ""
    is_private: bool = Field(False, validation_alias=_alias("is_private", "isPrivate"))
    stakes: str = ""
    min_buy_in: int | float = Field(0, validation_alias=_alias("min_buy_in", "buyInMin"))
    max_buy_in: int | float = Field(0, validation_alias=_alias("max_buy_in", "buyInMax"))
    buy_in: int | float = Field(0, validation_alias=_alias("buy_in", "buyIn"))
    fee: int | float = 0
    starting_chips: int = Field(
        0, validation_alias=_alias("starting_chips", "startingChips")
    )
    min_players: int = Field(6, validation_alias=_alias("min_players", "minPlayers"))
    max_players: int = Field(9, validation_alias=_alias("max_players", "maxPlayers"))
    players: int = 0
    invited_players: List[Any] = Field(
        default_factory=list,
        validation_alias=_alias("invited_players", "invitedPlayers"),
    )
    blind_levels: List[Any] = Field(
        default_factory=list, validation_alias=_alias("blind_levels", "blindLevels")
    )

    model_config = {"extra": "allow", "frozen": True}
