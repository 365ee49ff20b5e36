# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""
Base HTTP Schema (Adapters Layer)

Purpose:
    Canonical Pydantic base for all adapter-layer HTTP schemas.
    Enforces strict config and deterministic JSON encoding.

Layer: adapters/schemas/http

Notes:
    - Transport-facing only. Application DTOs must not import from this module.
    - Wire names are camelCase; Python attribute names stay snake_case and
      each schema declares its aliases explicitly.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseHTTPSchema(BaseModel):
    """Base class for all HTTP-facing schemas.

    Attributes:
        model_config: Pydantic v2 ``ConfigDict`` with strict validation and
            JSON-safe serialization rules.
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
        ser_json_inf_nan="null",
        use_enum_values=True,
    )

    def model_dump_http(self, **kwargs: Any) -> dict[str, Any]:
        """Return a JSON-serializable, alias-keyed dict for HTTP responses.

        Args:
            **kwargs: Optional Pydantic dump settings (e.g., ``exclude_none=True``).

        Returns:
            dict[str, Any]: Fully JSON-serializable representation.
        """
        kwargs.setdefault("by_alias", True)
        return self.model_dump(mode="json", **kwargs)
