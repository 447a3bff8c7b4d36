"""LLM route table: which chat endpoint serves which backend key."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple, Type

from pydantic import BaseModel, Field, field_validator, model_validator


class LlmRoute(BaseModel):  # One chat-completion endpoint
    name: str
    base_url: str
    endpoint: str = "/v1/chat/completions"
    model: str
    timeout_s: float = Field(default=20.0, gt=0)
    max_retries: int = Field(default=1, ge=0, le=5)
    api_key_env: Optional[str] = None
    response_format: Optional[str] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False
    enforce_json: bool = True

    @field_validator("base_url")
    @classmethod
    def _no_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class AppConfig(BaseModel):
    """Routes by id, plus a registry mapping backend keys to route ids."""

    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _registry_targets_exist(self) -> "AppConfig":
        unknown = sorted({route_id for route_id in self.registry.values() if route_id not in self.llm_routes})
        if unknown:
            raise ValueError(f"registry references unknown routes: {', '.join(unknown)}")
        return self

    def route_for(self, key: str) -> LlmRoute:
        if key not in self.registry:
            raise KeyError(f"Registry entry missing for '{key}'")
        return self.llm_routes[self.registry[key]]


RouteTable = Dict[str, Tuple[LlmRoute, Type[BaseModel]]]


def load_config(path: Path) -> AppConfig:
    return AppConfig.model_validate_json(path.read_text(encoding="utf-8"))


def resolve_registry(cfg: AppConfig, schemas: Dict[str, Type[BaseModel]]) -> RouteTable:
    """Pair each backend key in ``schemas`` with its configured route."""

    return {key: (cfg.route_for(key), schema) for key, schema in schemas.items()}


def load_app_registry(path: Path, schemas: Dict[str, Type[BaseModel]]) -> RouteTable:
    return resolve_registry(load_config(path), schemas)
