"""Server commands used by the hardcore ruleset.

Everything the game sees goes through these builders, so the exact text of
each broadcast lives in one place.
"""

from dataclasses import dataclass

DEATH_SCORE_HOLDER = "#hc.deathCount"

# Leaves 1 in the scratch score if any player has died, else 0
DEATH_TALLY_COMMANDS: tuple[str, ...] = (
    f"scoreboard players set {DEATH_SCORE_HOLDER} deaths 0",
    f"scoreboard players operation {DEATH_SCORE_HOLDER} deaths > * deaths",
)
DEATH_QUERY_COMMAND = f"execute if score {DEATH_SCORE_HOLDER} deaths matches 1.."

# Older servers answer in plain text, newer ones with the translation key
DEATH_PASS_MARKERS: tuple[str, ...] = ("passed", "commands.execute.conditional.pass")

GAME_OVER_COMMANDS: tuple[str, ...] = (
    'tellraw @a {"text": "Game Over!","color":"red"}',
    'tellraw @a {"text": "This run\'s Stats:", "color":"red"}',
)

CUE_COMMAND = (
    "execute as @a at @s run playsound minecraft:entity.wither.spawn "
    "player @s ~ ~ ~ 10 0.1"
)

TITLE_COMMANDS: tuple[str, ...] = (
    "title @a times 20 100 20",
    'title @a title {"text": "Game Over!","color":"red"}',
    'title @a subtitle {"text": "You have failed. Now you will suffer.","color":"red"}',
)

DISTANCE_OBJECTIVES: tuple[str, ...] = (
    "sneakTravel",
    "walkTravel",
    "sprintTravel",
    "swimTravel",
    "flyTravel",
    "horseTravel",
    "pigTravel",
    "minecartTravel",
    "striderTravel",
    "walkOnWaterTravel",
    "walkUnderWaterTravel",
    "fallTravel",
    "boatTravel",
    "climbTravel",
)

DEFAULT_SETUP_COMMANDS: tuple[str, ...] = (
    "difficulty hard",
    "scoreboard objectives add deaths deathCount",
    "scoreboard objectives add health health",
    "scoreboard objectives setdisplay list health",
    "gamerule playersSleepingPercentage 1",
    "scoreboard objectives add kills totalKillCount",
    "scoreboard objectives add i dummy",
    "scoreboard players set 100 i 100",
    # Travel distance
    "scoreboard objectives add sneakTravel minecraft.custom:minecraft.crouch_one_cm",
    "scoreboard objectives add walkTravel minecraft.custom:minecraft.walk_one_cm",
    "scoreboard objectives add sprintTravel minecraft.custom:minecraft.sprint_one_cm",
    "scoreboard objectives add swimTravel minecraft.custom:minecraft.swim_one_cm",
    "scoreboard objectives add flyTravel minecraft.custom:minecraft.aviate_one_cm",
    "scoreboard objectives add horseTravel minecraft.custom:minecraft.horse_one_cm",
    "scoreboard objectives add pigTravel minecraft.custom:minecraft.pig_one_cm",
    "scoreboard objectives add minecartTravel "
    "minecraft.custom:minecraft.minecart_one_cm",
    "scoreboard objectives add striderTravel minecraft.custom:minecraft.strider_one_cm",
    "scoreboard objectives add walkOnWaterTravel "
    "minecraft.custom:minecraft.walk_on_water_one_cm",
    "scoreboard objectives add walkUnderWaterTravel "
    "minecraft.custom:minecraft.walk_under_water_one_cm",
    "scoreboard objectives add fallTravel minecraft.custom:minecraft.fall_one_cm",
    "scoreboard objectives add boatTravel minecraft.custom:minecraft.boat_one_cm",
    "scoreboard objectives add climbTravel minecraft.custom:minecraft.climb_one_cm",
    # Other statistics
    "scoreboard objectives add jumpCount minecraft.custom:minecraft.jump",
    "scoreboard objectives add dropItem minecraft.custom:minecraft.drop",
    "scoreboard objectives add sneakTime minecraft.custom:minecraft.sneak_time",
    "scoreboard objectives add damageDealt minecraft.custom:minecraft.damage_dealt",
    "scoreboard objectives add damageTaken minecraft.custom:minecraft.damage_taken",
)


@dataclass(frozen=True, slots=True)
class StatBlock:
    """One aggregate-and-broadcast step of the end-of-run report.

    Attributes:
        holder: Fake player that accumulates the total in the ``i`` objective.
        objectives: Per-player objectives summed into the holder.
        prefix: Broadcast text before the number.
        suffix: Broadcast text after the number.
        divisor: Fake player in ``i`` holding the divisor, if the total is
            scaled down before broadcasting.
    """

    holder: str
    objectives: tuple[str, ...]
    prefix: str
    suffix: str
    divisor: str | None = None

    def commands(self) -> list[str]:
        """Return the fold commands followed by the broadcast."""
        commands = [
            "execute as @a run scoreboard players operation "
            f"{self.holder} i += @s {objective}"
            for objective in self.objectives
        ]
        if self.divisor is not None:
            commands.append(
                f"scoreboard players operation {self.holder} i /= {self.divisor} i"
            )
        commands.append(
            f'tellraw @a [{{"text": "{self.prefix}","color":"red"}}, '
            f'{{"score":{{"name":"{self.holder}","objective":"i"}},"color":"aqua"}}, '
            f'{{"text":"{self.suffix}"}}]'
        )
        return commands


STAT_BLOCKS: tuple[StatBlock, ...] = (
    StatBlock("#hc.kills", ("kills",), "You killed ", " mobs."),
    # Travel stats are in centimetres; the fake player "100" holds 100
    StatBlock(
        "#hc.distance",
        DISTANCE_OBJECTIVES,
        "You traveled a total of ",
        " blocks.",
        divisor="100",
    ),
    StatBlock("#hc.damageDealt", ("damageDealt",), "You dealt ", " damage."),
    StatBlock("#hc.damageTaken", ("damageTaken",), "You took ", " damage."),
    StatBlock("#hc.jumps", ("jumpCount",), "You jumped ", " times."),
    StatBlock("#hc.drops", ("dropItem",), "You dropped ", " items."),
)


def is_death_response(response: str) -> bool:
    """Check whether a death query response reports a match."""
    return any(marker in response for marker in DEATH_PASS_MARKERS)


def format_survived(seconds: int) -> str:
    """Format a duration as unpadded ``h:m:s``, e.g. ``1:2:5``."""
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}:{minutes}:{secs}"


def survived_command(seconds: int) -> str:
    """Return the broadcast announcing how long the run lasted."""
    return (
        'tellraw @a [{"text": "You survived for ","color":"red"}, '
        f'{{"text": "{format_survived(seconds)}","color":"aqua"}}, {{"text":"."}}]'
    )


def countdown_command(remaining: int) -> str:
    """Return the actionbar update for ``remaining`` seconds left."""
    return (
        'title @a actionbar {"text": '
        f'"Server will stop in {remaining} seconds...","color":"red"}}'
    )
