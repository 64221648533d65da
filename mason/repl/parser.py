"""
FILE: mason/repl/parser.py
PURPOSE: Parse a REPL input line into command, arguments and flags
EXPORTS:
  - ParseResult (dataclass for parsed commands)
  - parse_command(input_str) -> ParseResult
DEPENDENCIES:
  - shlex (for shell-like parsing with quotes)
  - dataclasses (for ParseResult)
NOTES:
  - Quoted strings stay one argument: add "Buy milk" --date tomorrow
  - Short flags are expanded (-d -> date, -y -> yes, -p -> pos)
  - Unknown dash words ("-milk") are ordinary arguments
  - Unquoted words after the command are kept apart; handlers join them for names
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

# Flags that take a value
VALUE_FLAGS = {"date"}

BOOL_FLAGS = {"yes", "pos"}

SHORT_FLAGS = {
    "d": "date",
    "y": "yes",
    "p": "pos",
}


@dataclass
class ParseResult:
    """
    Result of parsing a REPL command.

    Attributes:
        command: Lower-cased command name ("" for blank input)
        args: Positional arguments in order
        flags: e.g. {"date": "tomorrow", "yes": True}
        raw_input: Original input string
    """
    command: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, Union[str, bool]] = field(default_factory=dict)
    raw_input: str = ""

    @property
    def text(self) -> str:
        """All positional args joined back into one string."""
        return " ".join(self.args)


def _flag_name(token: str) -> Optional[str]:
    """Flag name for a known flag token, None for anything else."""
    if token.startswith("--"):
        name = token[2:]
    elif token.startswith("-"):
        name = SHORT_FLAGS.get(token[1:])
    else:
        return None
    if name in VALUE_FLAGS or name in BOOL_FLAGS:
        return name
    return None


def parse_command(input_str: str) -> ParseResult:
    """
    Parse REPL input into command, args, and flags.

    Examples:
        >>> parse_command('add "Pay rent" -d tomorrow')
        ParseResult(command='add', args=['Pay rent'], flags={'date': 'tomorrow'}, ...)

        >>> parse_command("rm 3,5 --yes")
        ParseResult(command='rm', args=['3,5'], flags={'yes': True}, ...)
    """
    input_str = input_str.strip()
    if not input_str:
        return ParseResult(command="", raw_input=input_str)

    try:
        tokens = shlex.split(input_str)
    except ValueError:
        # Unclosed quote: fall back to whitespace splitting
        tokens = input_str.split()

    if not tokens:
        return ParseResult(command="", raw_input=input_str)

    result = ParseResult(command=tokens[0].lower(), raw_input=input_str)

    rest = iter(tokens[1:])
    for token in rest:
        name = _flag_name(token)
        if name is None:
            result.args.append(token)
            continue

        if name in VALUE_FLAGS:
            value = next(rest, None)
            if value is not None:
                result.flags[name] = value
        else:
            result.flags[name] = True

    return result
