"""
Configuration for the PharmaGuard analysis services.
Centralizes the tunable constants used by the VCF parser, the risk engine
and the analysis pipeline.

Values can be overridden from a JSON file named by ``PHARMAGUARD_CONFIG_FILE``
(``.env`` files are honoured) or at runtime through ``update_config``.
"""

import json
import os
from typing import List

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

load_dotenv(find_dotenv())


class VcfParserConfig(BaseModel):
    """Structural limits and header expectations for uploaded VCF text."""

    max_file_size_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Maximum accepted UTF-8 byte size of a VCF upload"
    )

    fileformat_prefix: str = Field(
        default="##fileformat=",
        description="Meta line declaring the file format"
    )

    format_family: str = Field(
        default="VCF",
        description="Required prefix of the declared file format"
    )

    column_header_prefix: str = Field(
        default="#CHROM",
        description="Prefix of the column header line"
    )

    required_columns: List[str] = Field(
        default_factory=lambda: ["#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO"],
        description="Mandatory leading header columns, in order"
    )


class RiskConfidenceConfig(BaseModel):
    """Confidence score (0-100) attached to each risk outcome."""

    critical: int = Field(default=95, ge=0, le=100)
    high: int = Field(default=92, ge=0, le=100, description="Legacy level, never produced by label rules")
    moderate: int = Field(default=85, ge=0, le=100)
    low: int = Field(default=90, ge=0, le=100)
    unknown: int = Field(default=20, ge=0, le=100)

    gene_not_tested: int = Field(
        default=30,
        ge=0,
        le=100,
        description="Target gene absent while other pharmacogenes were detected"
    )

    no_pgx_variants: int = Field(
        default=10,
        ge=0,
        le=100,
        description="No pharmacogene detected anywhere in the file"
    )


class PipelineConfig(BaseModel):
    """Report metadata and service limits."""

    analysis_version: str = Field(default="1.0.0")
    pipeline_name: str = Field(default="PharmaGuard CPIC-Aligned PGx Pipeline")
    allowed_extensions: List[str] = Field(
        default_factory=lambda: [".vcf"],
        description="Accepted upload filename suffixes"
    )
    max_sessions: int = Field(
        default=1000,
        gt=0,
        description="Session result stores kept before the least recently used is evicted"
    )


class PharmaGuardConfig(BaseModel):
    """Master configuration."""

    vcf_parser: VcfParserConfig = Field(default_factory=VcfParserConfig)
    confidence: RiskConfidenceConfig = Field(default_factory=RiskConfidenceConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    log_level: str = Field(
        default="INFO",
        description="Root log level for the service"
    )


def _initial_config() -> PharmaGuardConfig:
    path = os.getenv("PHARMAGUARD_CONFIG_FILE")
    if path:
        with open(path, 'r') as f:
            config = PharmaGuardConfig(**json.load(f))
    else:
        config = PharmaGuardConfig()

    level = os.getenv("PHARMAGUARD_LOG_LEVEL")
    if level:
        config = config.model_copy(update={"log_level": level.upper()})
    return config


# Global configuration instance
_config: PharmaGuardConfig = _initial_config()


def get_config() -> PharmaGuardConfig:
    """Get the global configuration instance."""
    return _config


def update_config(**kwargs) -> PharmaGuardConfig:
    """
    Update configuration parameters.

    Nested values use dotted keys, e.g.
    ``update_config(**{"confidence.unknown": 15})``.
    """
    global _config
    current_dict = _config.model_dump()

    for key, value in kwargs.items():
        if '.' in key:
            parts = key.split('.')
            current = current_dict
            for part in parts[:-1]:
                current = current[part]
            current[parts[-1]] = value
        else:
            current_dict[key] = value

    _config = PharmaGuardConfig(**current_dict)
    return _config


def reset_config() -> PharmaGuardConfig:
    """Restore built-in defaults (ignores the environment)."""
    global _config
    _config = PharmaGuardConfig()
    return _config


def load_config_from_file(filepath: str) -> PharmaGuardConfig:
    """Load configuration from a JSON file."""
    global _config

    with open(filepath, 'r') as f:
        config_dict = json.load(f)

    _config = PharmaGuardConfig(**config_dict)
    return _config


def save_config_to_file(filepath: str):
    """Save current configuration to a JSON file."""
    with open(filepath, 'w') as f:
        json.dump(_config.model_dump(), f, indent=2)


# Convenience accessors
def get_parser_config() -> VcfParserConfig:
    return _config.vcf_parser


def get_confidence_config() -> RiskConfidenceConfig:
    return _config.confidence


def get_pipeline_config() -> PipelineConfig:
    return _config.pipeline
