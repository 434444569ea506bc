"""Parse configuration."""

from typing import Literal

from pydantic import BaseModel


class ParseOptions(BaseModel):
    """Options controlling how strictly an archive is validated."""

    # None follows each entry's byte order mark and XML declaration
    encoding: str | None = None
    # "eager" checks every manifest href against the archive at parse time
    validate_resources: Literal["eager", "lazy"] = "eager"
    strict_resources: bool = False  # Missing resources fail the parse
    require_navigation: bool = False
    recover_navigation: bool = True  # Let lxml repair broken nav/NCX markup
