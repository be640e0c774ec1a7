"""Input collection: turn CLI/env seed values plus prompts into a request."""

import logging
from dataclasses import replace

from .errors import InvalidInputError
from .models import RewriteRequest
from .prompting import Prompter
from .validation import check_pairing

logger = logging.getLogger(__name__)

CHANGE_OPTIONS = ["Email address only", "Name only", "Both email and name"]


def collect_request(seed: RewriteRequest, prompter: Prompter) -> RewriteRequest:
    """
    Complete ``seed`` by prompting for whatever is missing.

    With no identity values at all, the user picks email, name or both from a
    menu. Otherwise only the missing half of a pair is asked for; callers
    that supply just an old/new email are additionally offered the optional
    name change.

    Raises:
        InvalidInputError: on an invalid menu choice, or when a pair is still
            incomplete after prompting
    """
    if seed.is_empty:
        request = _collect_from_menu(seed, prompter)
    else:
        request = _complete_pairs(seed, prompter)

    check_pairing(request)
    logger.debug(
        "Collected request: email=%s name=%s", request.wants_email, request.wants_name
    )
    return request


def _ask_emails(prompter: Prompter) -> dict:
    return {
        "old_email": prompter.ask("Enter the OLD email address to replace"),
        "new_email": prompter.ask("Enter the NEW email address"),
    }


def _ask_names(prompter: Prompter) -> dict:
    return {
        "old_name": prompter.ask("Enter the OLD name to replace"),
        "new_name": prompter.ask("Enter the NEW name"),
    }


def _collect_from_menu(seed: RewriteRequest, prompter: Prompter) -> RewriteRequest:
    choice = prompter.choose("What would you like to change?", CHANGE_OPTIONS).strip()

    if choice == "1":
        values = _ask_emails(prompter)
    elif choice == "2":
        values = _ask_names(prompter)
    elif choice == "3":
        values = {**_ask_emails(prompter), **_ask_names(prompter)}
    else:
        raise InvalidInputError(f"Invalid choice: {choice!r} (expected 1, 2 or 3)")

    return replace(seed, **values)


def _complete_pairs(seed: RewriteRequest, prompter: Prompter) -> RewriteRequest:
    old_email, new_email = seed.old_email, seed.new_email
    old_name, new_name = seed.old_name, seed.new_name

    if new_email and not old_email:
        old_email = prompter.ask("Enter the OLD email address to replace")
    if old_email and not new_email:
        new_email = prompter.ask("Enter the NEW email address")
    if new_name and not old_name:
        old_name = prompter.ask("Enter the OLD name to replace")
    if old_name and not new_name:
        new_name = prompter.ask("Enter the NEW name")

    offer_name = prompter.interactive and not prompter.assume_yes
    if old_email and new_email and not old_name and not new_name and offer_name:
        if prompter.confirm("Do you also want to change the author/committer name?"):
            old_name = prompter.ask(
                "Enter the OLD name to replace (leave empty to skip)"
            )
            if old_name:
                new_name = prompter.ask("Enter the NEW name")

    return replace(
        seed,
        old_email=old_email,
        new_email=new_email,
        old_name=old_name,
        new_name=new_name,
    )
