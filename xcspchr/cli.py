"""Command line entry point of the instance converter."""

from __future__ import annotations

import sys
import xml.etree.ElementTree as ET
from typing import Sequence

from .parser import convert

PROG = "xcspchr"


def normalize_rule_name(text: str) -> str:
    """Lower-case a rule name and drop all whitespace."""
    return "".join(char.lower() for char in text if not char.isspace())


def split_rules(rules: str) -> list[str]:
    """Split a comma separated rule list into normalised names."""
    parts = rules.split(",")
    if parts and parts[-1] == "":
        parts.pop()
    return [normalize_rule_name(part) for part in parts]


def usage(prog: str) -> str:
    """Return the usage text."""
    return (
        f"Usage: {prog} [options] <instance.xml>\n"
        "Options disponibles :\n"
        "  -b               Utiliser CHRStructBuilder\n"
        "  -m               Mode minimal\n"
        "  -s [r1,r2,...]   Sélectionner uniquement certaines règles\n"
        "  -f               Utilisation d'un fichier de sortie [filename].chrpp \n"
        f"Exemple : {prog} -b -m -s [linear,allDifferent] instance.xml\n"
    )


def _fail(message: str, show_usage: bool = False) -> int:
    print(message, file=sys.stderr)
    if show_usage:
        print(usage(PROG), end="", file=sys.stderr)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the converter; return the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(usage(PROG), end="", file=sys.stderr)
        return 1

    use_builder = minimal_mode = use_file = False
    selected_rules: list[str] = []
    file_path = ""

    remaining = iter(args)
    for arg in remaining:
        if arg == "-b":
            use_builder = True
        elif arg == "-m":
            minimal_mode = True
        elif arg == "-f":
            use_file = True
        elif arg == "-s":
            value = next(remaining, None)
            if value is None:
                return _fail("Erreur: L'option -s nécessite une liste de règles.")
            selected_rules = split_rules(value)
        elif arg == "-help":
            return _fail(f"Option inconnue : {arg}", show_usage=True)
        else:
            file_path = arg

    if not file_path:
        return _fail("Erreur: Aucun fichier instance fourni.", show_usage=True)

    try:
        convert(file_path, selected_rules, use_builder, use_file, minimal_mode)
    except (ValueError, KeyError, OSError, ET.ParseError) as error:
        return _fail(f"Erreur : {error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())