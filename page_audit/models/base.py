"""Shared pydantic base for harness models."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model.

    Fields may be populated by name or by alias, so engine output in
    camelCase and Python-side construction both validate.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)
