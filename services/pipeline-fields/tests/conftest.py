"""Shared test fixtures for pipeline fields tests."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def pipeline_config_schema() -> dict:
    """Config schema as published by a pydantic v2 pipeline config."""
    return {
        "title": "LongLiveConfig",
        "type": "object",
        "properties": {
            "height": {"type": "integer", "default": 512, "minimum": 64, "maximum": 2048},
            "width": {"type": "integer", "default": 512, "minimum": 64, "maximum": 2048},
            "base_seed": {"type": "integer", "default": 42},
            "cfg_scale": {
                "type": "number",
                "default": 7.5,
                "minimum": 1,
                "maximum": 20,
                "description": "Classifier-free guidance scale",
            },
            "strength": {"type": "number", "default": 0.4, "minimum": 0, "maximum": 0.8},
            "num_frames": {"type": "integer", "default": 16, "minimum": 1, "maximum": 64},
            "enable_fp8": {"type": "boolean", "default": False, "description": "Use FP8 weights"},
            "prompt_prefix": {"type": "string", "default": ""},
            "scheduler": {"type": "string", "enum": ["ddim", "lcm"], "default": "lcm"},
            "sampler": {
                "$ref": "#/$defs/Sampler",
                "default": "euler",
                "description": "Sampling algorithm",
            },
            "lora_paths": {"type": "array", "items": {"type": "string"}},
            "extra": {"type": "object"},
        },
        "$defs": {
            "Sampler": {"title": "Sampler", "type": "string", "enum": ["euler", "dpm++"]},
        },
    }


@pytest.fixture
def pipelines_payload(pipeline_config_schema: dict) -> dict:
    """Pipeline server response for GET /api/v1/pipelines/schemas."""
    return {
        "pipelines": {
            "longlive": {"name": "LongLive", "config_schema": pipeline_config_schema},
            "passthrough": {"name": "Passthrough"},
        }
    }
