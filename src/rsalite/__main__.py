"""The Command Line Interface for rsalite, including Interactive elements.

A hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface): every argument missing from the
command line is asked for interactively, unless non-interactive mode is on, in which case defaults are used and
anything without a default is an error.

Typical usage example:

    rsalite keygen -p key.pub -P key --keysize 2048
    OR
    python -m rsalite encrypt -p key.pub --message "Hi there!"
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import pathlib
import sys
import typing
import warnings

import rsalite


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None
    advanced: bool = False


help_dict: dict[str, HelpData] = {
    "subcommand":
        HelpData(
            description="The available subcommands in rsalite.",
            choices=["keygen", "encrypt", "decrypt"],
        ),
    "keygen":
        HelpData("Key pair generation utility."),
    "encrypt":
        HelpData("Encryption utility."),
    "decrypt":
        HelpData("Decryption utility."),
    "public_key":
        HelpData(
            description="Location of the public key file.",
            format=pathlib.Path,
        ),
    "private_key":
        HelpData(
            description="Location of the private key file.",
            format=pathlib.Path,
        ),
    "message":
        HelpData(
            description="Message, ciphertext or path to file containing it. If Path start with `P:`",
            format=str,
        ),
    "keysize":
        HelpData(
            description="Key size (in bits).",
            choices=["512", "1024", "2048", "3072", "4096"],
            default="2048",
        ),
    "pub_exponent":
        HelpData(
            description="Exponent for the public key.",
            format=int,
            advanced=True,
            default=rsalite.keygen.DEFAULT_PUBLIC_EXPONENT,
        ),
    "phrase":
        HelpData(
            description="Phrase to derive the key from, empty for system randomness. Warning! Unsecure.",
            format=str,
            advanced=True,
            default="",
        ),
    "key_format":
        HelpData(
            description="Key file format.",
            choices=["json", "pem"],
            advanced=True,
            default="json",
        ),
    "overwrite":
        HelpData(
            description="Overwrite specified destination files if they exist?",
            choices=["Y", "N"],
            default="N",
        )
}

needs = {
    "keygen": ("public_key", "private_key", "keysize", "pub_exponent", "phrase", "key_format"),
    "encrypt": ("public_key", "message"),
    "decrypt": ("private_key", "message"),
}

pubkey = argparse.ArgumentParser(add_help=False)
pubkey.add_argument("--public_key", "-p", type=help_dict["public_key"].format, help=help_dict["public_key"].description)
privkey = argparse.ArgumentParser(add_help=False)
privkey.add_argument("--private_key",
                     "-P",
                     type=help_dict["private_key"].format,
                     help=help_dict["private_key"].description)
payloads = argparse.ArgumentParser(add_help=False)
payloads.add_argument("--message", "-m", type=help_dict["message"].format, help=help_dict["message"].description)
corep = argparse.ArgumentParser(prog="rsalite")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {rsalite.__version__}")
corep.add_argument("--non-interactive", "-n", action="store_true", help="Enable non-interactive mode")
corep.add_argument("--advanced", "-a", action="store_true", help="Enable advanced mode, for interactive mode")
corep.add_argument("--verbose", "-V", action="count", default=0, help="Log progress, repeat for debug output")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")

keygen = commands.add_parser("keygen", parents=[privkey, pubkey], help=help_dict["keygen"].description)
keygen.add_argument("--keysize", choices=help_dict["keysize"].choices, help=help_dict["keysize"].description)
keygen.add_argument("--pub-exponent", type=help_dict["pub_exponent"].format, help=help_dict["pub_exponent"].description)
keygen.add_argument("--phrase", type=help_dict["phrase"].format, help=help_dict["phrase"].description)
keygen.add_argument("--key-format", choices=help_dict["key_format"].choices, help=help_dict["key_format"].description)
keygen.add_argument("--overwrite", "-o", action="store_const", const="Y", help=help_dict["overwrite"].description)

encrypt = commands.add_parser("encrypt", parents=[pubkey, payloads], help=help_dict["encrypt"].description)
decrypt = commands.add_parser("decrypt", parents=[privkey, payloads], help=help_dict["decrypt"].description)


def preset(arg: str, mode: tuple[bool, bool]) -> typing.Any:
    """Value an unasked argument falls back to, or None if the user has to be asked.

    Raises:
        IOError: If the argument has no default and non-interactive mode is active.
    """
    non_interactive, advanced = mode
    data = help_dict[arg]
    if data.default is not None and (non_interactive or (data.advanced and not advanced)):
        return data.default
    if non_interactive:
        raise IOError(f"Argument {arg} is missing and non-interactive mode is active.")
    return None


def describe(arg: str, prntr: typing.Callable = print) -> None:
    data = help_dict[arg]
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + data.description)
    for choice in data.choices or ():
        mark = " (Default)" if choice == data.default else ""
        sub = help_dict.get(choice)
        prntr(f"{choice} - {sub.description}{mark}" if sub else f"{choice}{mark}")
    if data.default is not None:
        if not data.choices:
            prntr(f"Default value: {data.default}")
        prntr("To accept default just click enter. Otherwise specify value.")


def convert(arg: str, answer: str) -> typing.Any:
    """Turns a typed answer into the value of `arg`.

    Raises:
        ValueError: With the hint to show the user, if the answer is unusable.
    """
    data = help_dict[arg]
    if not answer:
        if data.default is None:
            raise ValueError("Please provide a value.")
        return data.default
    if data.choices is not None:
        if answer not in data.choices:
            raise ValueError("Please select an option from the list.")
        return answer
    try:
        return data.format(answer)
    except ValueError as exc:
        raise ValueError(f"We could not convert your value to {data.format.__name__}.") from exc


def ask(arg: str, mode: tuple[bool, bool], prntr: typing.Callable = print) -> typing.Any:
    """Resolves a missing argument, prompting until a usable answer arrives."""
    value = preset(arg, mode)
    if value is not None:
        return value
    describe(arg, prntr)
    while True:
        try:
            return convert(arg, input(f"{arg}: "))
        except ValueError as exc:
            prntr(str(exc))


def check_message(mess: str) -> str:
    """Parse message for path-notice."""
    if mess.startswith("P:"):
        with open(mess[2:], "r", encoding="utf-8") as f:
            mess = f.read()
    return mess


def run(args: argparse.Namespace, pspr: typing.Callable) -> None:
    """Executes a fully populated subcommand."""
    match args.subcommand:
        case "keygen":
            if args.private_key.exists() or args.public_key.exists():
                rs = getattr(args, "overwrite", None)
                if rs is None:
                    rs = ask("overwrite", (args.non_interactive, args.advanced), pspr)
                if rs == "N":
                    print("Destination private or public key already exists!")
                    return
            source = None
            if args.phrase:
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore", RuntimeWarning)
                    source = rsalite.PhraseEntropy(args.phrase)
                pspr("Warning! Deriving the key from a phrase is unsecure.")
            rpk = rsalite.RSAPrivKey.generate(int(args.keysize), args.pub_exponent, source)
            rpk.export(args.private_key, args.key_format)
            rpk.pub.export(args.public_key, args.key_format)
            pspr("\nKey pair generated!")
        case "encrypt":
            rpu = rsalite.RSAPubKey.import_key(args.public_key)
            ciph = rpu.encrypt(check_message(args.message))
            pspr("Ciphertext:")
            print(ciph)
        case "decrypt":
            rpk = rsalite.RSAPrivKey.import_key(args.private_key)
            clear = rpk.decrypt(check_message(args.message).strip())
            pspr("Cleartext:")
            print(clear)


def main():
    """Core Hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface)"""
    args = corep.parse_args()
    pstatus = (args.non_interactive, args.advanced)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG if args.verbose > 1 else logging.INFO,
                            format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    def pspr(text: str):
        """Print only if not in non-interactive mode."""
        if not pstatus[0]:
            print(text)

    pspr("Welcome to rsalite!\n")
    if not args.subcommand:
        args.subcommand = ask("subcommand", pstatus)
    for reqs in needs[args.subcommand]:
        if getattr(args, reqs, None) is None:
            setattr(args, reqs, ask(reqs, pstatus))
        else:
            pspr(f"{reqs}: {getattr(args, reqs)}")
    pspr("\nInput Complete! Executing...")
    try:
        run(args, pspr)
    except rsalite.RSAError as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    pspr("Thank you for using rsalite!")
    pspr("Goodbye!")


if __name__ == "__main__":
    main()
