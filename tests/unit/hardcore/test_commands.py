import json

import pytest

from hcserver.hardcore import (
    DEATH_PASS_MARKERS,
    DEFAULT_SETUP_COMMANDS,
    DISTANCE_OBJECTIVES,
    STAT_BLOCKS,
    StatBlock,
    countdown_command,
    format_survived,
    is_death_response,
    survived_command,
)


def tellraw_payload(command: str) -> object:
    prefix = "tellraw @a "
    assert command.startswith(prefix)
    return json.loads(command.removeprefix(prefix))


class TestStatBlock:
    def test_folds_each_objective_then_broadcasts(self) -> None:
        block = StatBlock("#hc.kills", ("kills",), "You killed ", " mobs.")

        commands = block.commands()

        assert commands[0] == (
            "execute as @a run scoreboard players operation #hc.kills i += @s kills"
        )
        assert tellraw_payload(commands[-1]) == [
            {"text": "You killed ", "color": "red"},
            {"score": {"name": "#hc.kills", "objective": "i"}, "color": "aqua"},
            {"text": " mobs."},
        ]
        assert len(commands) == 2

    def test_distance_block_sums_every_travel_objective(self) -> None:
        distance = next(
            block for block in STAT_BLOCKS if block.holder == "#hc.distance"
        )

        commands = distance.commands()

        assert len(DISTANCE_OBJECTIVES) == 14
        assert len(commands) == len(DISTANCE_OBJECTIVES) + 2
        assert commands[-2] == "scoreboard players operation #hc.distance i /= 100 i"

    def test_stat_blocks_cover_the_report(self) -> None:
        assert [block.holder for block in STAT_BLOCKS] == [
            "#hc.kills",
            "#hc.distance",
            "#hc.damageDealt",
            "#hc.damageTaken",
            "#hc.jumps",
            "#hc.drops",
        ]


class TestFormatting:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "0:0:0"),
            (59, "0:0:59"),
            (3725, "1:2:5"),
            (90061, "25:1:1"),
        ],
    )
    def test_format_survived_is_unpadded(self, seconds: int, expected: str) -> None:
        assert format_survived(seconds) == expected

    def test_survived_command_embeds_duration(self) -> None:
        assert tellraw_payload(survived_command(3725)) == [
            {"text": "You survived for ", "color": "red"},
            {"text": "1:2:5", "color": "aqua"},
            {"text": "."},
        ]

    def test_countdown_command(self) -> None:
        command = countdown_command(12)

        assert command.startswith("title @a actionbar ")
        payload = json.loads(command.removeprefix("title @a actionbar "))
        assert payload == {"text": "Server will stop in 12 seconds...", "color": "red"}


class TestDeathResponse:
    @pytest.mark.parametrize("marker", DEATH_PASS_MARKERS)
    def test_pass_markers_report_a_death(self, marker: str) -> None:
        assert is_death_response(f"Test {marker}")

    @pytest.mark.parametrize("response", ["Test failed", "", "Unknown command"])
    def test_other_responses_do_not(self, response: str) -> None:
        assert not is_death_response(response)


class TestSetupCommands:
    def test_creates_every_objective_the_report_reads(self) -> None:
        created = {
            command.split()[3]
            for command in DEFAULT_SETUP_COMMANDS
            if command.startswith("scoreboard objectives add ")
        }
        read = {objective for block in STAT_BLOCKS for objective in block.objectives}

        assert read <= created
        assert "deaths" in created

    def test_seeds_the_distance_divisor(self) -> None:
        assert "scoreboard players set 100 i 100" in DEFAULT_SETUP_COMMANDS
