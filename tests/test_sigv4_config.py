import pytest

from promkit.sigv4_config import SigV4Config

GOOD_YAML = """
region: us-east-2
access_key: placeholder
secret_key: secret
profile: default
role_arn: arn:aws:iam::000000000000:role/example
"""

BAD_YAML = """
region: us-east-2
access_key: placeholder
"""


def test_good_config():
    cfg = SigV4Config.from_yaml(GOOD_YAML)
    assert cfg.region == "us-east-2"
    assert cfg.access_key == "placeholder"
    assert cfg.secret_key == "secret"
    assert cfg.profile == "default"
    assert cfg.use_fips_sts_endpoint is False


def test_bad_config():
    with pytest.raises(ValueError) as excinfo:
        SigV4Config.from_yaml(BAD_YAML)
    assert "must provide a AWS SigV4 Access key and Secret Key" in str(excinfo.value)


def test_only_secret_is_bad():
    with pytest.raises(ValueError, match="must provide a AWS SigV4 Access key"):
        SigV4Config(secret_key="secret").validate()


def test_empty_yaml_gives_defaults():
    assert SigV4Config.from_yaml("") == SigV4Config()


def test_unknown_field_rejected():
    with pytest.raises(ValueError, match="not found"):
        SigV4Config.from_yaml("region: us-east-2\nbogus: 1\n")


def test_fips_flag():
    cfg = SigV4Config.from_yaml("use_fips_sts_endpoint: true\n")
    assert cfg.use_fips_sts_endpoint is True


def test_fips_flag_must_be_bool():
    with pytest.raises(ValueError):
        SigV4Config.from_yaml("use_fips_sts_endpoint: sometimes\n")


def test_secret_hidden_from_repr():
    cfg = SigV4Config(access_key="placeholder", secret_key="secret")
    assert "secret" not in repr(cfg)