"""Settings for signing requests with the AWS Signature Version 4 process."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

import yaml

_CREDENTIALS_ERROR = (
    "must provide a AWS SigV4 Access key and Secret Key if credentials are "
    "specified in the SigV4 config"
)


@dataclass
class SigV4Config:
    """Empty values are left to the default AWS credential chain."""

    region: str = ""
    access_key: str = ""
    secret_key: str = field(default="", repr=False)
    profile: str = ""
    role_arn: str = ""
    use_fips_sts_endpoint: bool = False

    def validate(self) -> None:
        if (self.access_key == "") != (self.secret_key == ""):
            raise ValueError(_CREDENTIALS_ERROR)

    @classmethod
    def from_yaml(cls, text: str | bytes) -> SigV4Config:
        """Load a config strictly: unknown keys and wrong types are errors."""
        loaded = yaml.safe_load(text)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("sigv4 config must be a YAML mapping")
        known = {f.name: f for f in fields(cls)}
        values = {}
        for key, raw in loaded.items():
            if key not in known:
                raise ValueError(f"field {key} not found in type SigV4Config")
            if raw is None:
                continue
            if key == "use_fips_sts_endpoint":
                if not isinstance(raw, bool):
                    raise ValueError(f"field {key} must be a boolean")
                values[key] = raw
            else:
                if isinstance(raw, (dict, list)):
                    raise ValueError(f"field {key} must be a string")
                values[key] = raw if isinstance(raw, str) else str(raw)
        config = cls(**values)
        config.validate()
        return config