"""Invocation parsing: recognized options and run mode selection.

The command line is ``[OPTIONS...] SOURCE DESTINATION``. A small table of
recognized options decides which tokens the wrapper consumes; everything
else is forwarded verbatim to the transfer tool.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .sync.paths import TransferRoot

logger = logging.getLogger(__name__)


class OptionEffect(str, Enum):
    """Effect of a recognized option."""

    RECURSIVE = "recursive"
    """Caller asks for a recursive (directory) transfer"""

    RESUME = "resume"
    """Caller asks for resume/overwrite-partial behaviour"""


class RunMode(str, Enum):
    """How an invocation is executed."""

    PASS_THROUGH = "pass_through"
    UPLOAD_DIRECTORY_RESUME = "upload_directory_resume"
    DOWNLOAD_DIRECTORY_RESUME = "download_directory_resume"


# Tool options the wrapper understands. They are consumed (not forwarded)
# in the directory resume modes.
RECOGNIZED_OPTIONS: dict[str, OptionEffect] = {
    "-r": OptionEffect.RECURSIVE,
    "--recursive": OptionEffect.RECURSIVE,
    "-k": OptionEffect.RESUME,
    "--resume": OptionEffect.RESUME,
}


@dataclass
class InvocationOptions:
    """Typed view of one invocation of the wrapper."""

    args: list[str]
    """All tool arguments as given by the caller"""

    recursive: bool = False
    resume: bool = False

    passthrough_options: list[str] = field(default_factory=list)
    """Options forwarded to each file transfer"""

    source: Optional[TransferRoot] = None
    destination: Optional[TransferRoot] = None

    @property
    def has_endpoints(self) -> bool:
        return self.source is not None and self.destination is not None


def parse_invocation(
    args: Sequence[str],
    resume_args: Iterable[str] = (),
) -> InvocationOptions:
    """Classify the caller's tool arguments.

    The last two positional values are the source and destination
    endpoints. Recognized options set their effect and are left out of the
    pass-through list.

    Args:
        args: Tool arguments (wrapper options already removed)
        resume_args: Extra tokens that also request resume behaviour, e.g.
            the configured resume arguments of the tool

    Returns:
        InvocationOptions

    Examples:
        >>> opts = parse_invocation(["-r", "--resume", "-P", "22", "h:/a", "/b"])
        >>> opts.recursive, opts.resume, opts.passthrough_options
        (True, True, ['-P', '22'])
    """
    table = dict(RECOGNIZED_OPTIONS)
    for token in resume_args:
        table.setdefault(token, OptionEffect.RESUME)

    options = InvocationOptions(args=list(args))
    if len(args) < 2:
        return options

    *flags, source, destination = args
    if source.startswith("-") or destination.startswith("-"):
        # Not an endpoint pair; leave the whole invocation to the tool
        return options

    options.source = TransferRoot.parse(source)
    options.destination = TransferRoot.parse(destination)

    for token in flags:
        effect = table.get(token)
        if effect == OptionEffect.RECURSIVE:
            options.recursive = True
        elif effect == OptionEffect.RESUME:
            options.resume = True
        else:
            options.passthrough_options.append(token)

    logger.debug(
        "Invocation: recursive=%s resume=%s passthrough=%s source=%s destination=%s",
        options.recursive,
        options.resume,
        options.passthrough_options,
        options.source,
        options.destination,
    )
    return options


def select_mode(options: InvocationOptions) -> RunMode:
    """Pick the run mode for an invocation.

    | recursive and resume | source | destination | mode                      |
    |----------------------|--------|-------------|---------------------------|
    | no                   | any    | any         | PASS_THROUGH              |
    | yes                  | remote | local       | DOWNLOAD_DIRECTORY_RESUME |
    | yes                  | local  | remote      | UPLOAD_DIRECTORY_RESUME   |
    | yes                  | local  | local       | PASS_THROUGH              |
    | yes                  | remote | remote      | PASS_THROUGH              |
    """
    if not (options.recursive and options.resume) or not options.has_endpoints:
        return RunMode.PASS_THROUGH

    assert options.source is not None and options.destination is not None
    if options.source.is_remote and not options.destination.is_remote:
        return RunMode.DOWNLOAD_DIRECTORY_RESUME
    if not options.source.is_remote and options.destination.is_remote:
        return RunMode.UPLOAD_DIRECTORY_RESUME
    return RunMode.PASS_THROUGH
