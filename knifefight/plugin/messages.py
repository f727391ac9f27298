"""Chat lines and center prompts shown to players."""

from __future__ import annotations

# \x08 and \x01 are host chat color codes (grey tag, default text).
CHAT_PREFIX = " \x08[KNIFE FIGHT] \x01"
HIGHLIGHT = "\x06"
MUSIC_COLOR = "\x10"


def chat(text: str) -> str:
    return f"{CHAT_PREFIX}{text}"


def last_two_lines(name_a: str, name_b: str) -> list[str]:
    return [
        chat("The last two players start a knife fight!"),
        chat(f"{name_a} vs {name_b}"),
    ]


def music_line() -> str:
    return chat(f"{MUSIC_COLOR}♫ Fight music is on!")


def start_lines(duration_seconds: int) -> list[str]:
    return [
        chat(f"{HIGHLIGHT}⚔ KNIFE FIGHT STARTED! ⚔"),
        chat(f"You have {duration_seconds} seconds!"),
    ]


def start_prompt() -> str:
    return "⚔ KNIFE FIGHT! ⚔\nSettle it in a fair duel!"


def win_lines(winner_name: str, reward: int) -> list[str]:
    return [
        chat(f"{HIGHLIGHT}\U0001f3c6 WINNER: {winner_name} \U0001f3c6"),
        chat(f"Knife fight over! +${reward} reward"),
    ]


def winner_prompt(reward: int) -> str:
    return f"\U0001f3c6 YOU WON THE KNIFE FIGHT! \U0001f3c6\n+${reward} reward!"


def spectator_prompt(winner_name: str) -> str:
    return f"\U0001f3c6 Knife fight winner: {winner_name}"


def timeout_line() -> str:
    return chat("Knife fight time is up! Draw.")


def mutual_elimination_line() -> str:
    return chat("Both fighters fell! Draw.")
