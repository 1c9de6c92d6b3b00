# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Yes/no prompting used to confirm additional packages."""

from __future__ import annotations

from functools import partial
import textwrap
from typing import Callable

InputFn = Callable[[str], str]


def prompt_boolean(
    question: str,
    default: bool = True,
    *,
    assume_yes: bool = False,
    input_fn: InputFn = input,
) -> bool:
    """Ask a yes/no question until a usable answer is given.

    Args:
        question: Question text, without the [Y/n] suffix.
        default: Answer used for an empty reply or end of input.
        assume_yes: Answer yes without asking.
        input_fn: Function reading one line of input (for tests).

    Returns:
        The answer.
    """
    choices = "[Y/n]" if default else "[y/N]"
    if assume_yes:
        print(f"{question} {choices} (assuming yes)")
        return True

    while True:
        try:
            reply = input_fn(f"{question} {choices} ").strip().lower()
        except EOFError:
            print()
            return default
        if not reply:
            return default
        if reply in ("y", "yes"):
            return True
        if reply in ("n", "no"):
            return False
        print("Please answer 'y' or 'n'.")


def confirm_additional(
    names: list[str],
    *,
    assume_yes: bool = False,
    input_fn: InputFn = input,
) -> bool:
    """List the additional packages and ask whether to continue."""
    if len(names) > 1:
        print(f"The following {len(names)} additional packages will be installed:")
    else:
        print("The following additional package will be installed:")
    print(textwrap.fill(" ".join(names), width=78, initial_indent=" ", subsequent_indent=" "))
    return prompt_boolean(
        "Do you want to continue?", True, assume_yes=assume_yes, input_fn=input_fn
    )


def make_confirm(assume_yes: bool = False) -> Callable[[list[str]], bool]:
    """Return a confirm callback for the scheduler."""
    return partial(confirm_additional, assume_yes=assume_yes)
