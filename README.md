# promkit

Building blocks for monitoring tools:

- **Time and durations** (`promkit.timemodel`): millisecond timestamps (`Time`) and
  durations written like `1h30m`, `14d` or `10y` (`parse_duration`, `Duration`).
- **Query result values** (`promkit.value`, `promkit.value_float`,
  `promkit.value_histogram`, `promkit.value_type`): `Sample`, `Vector`, `Matrix`,
  `Scalar`, `String`, native histograms, all with JSON encoding and decoding.
- **Leveled logging** (`promkit.promlog`, `promkit.logflags`): logfmt or JSON
  loggers with a minimum level that can be changed while running, plus
  `--log.level` / `--log.format` options for `argparse`.
- **Version information** (`promkit.version`).
- **SigV4 configuration** (`promkit.sigv4_config`): load and validate from YAML.
- **WSGI routing** (`promkit.route`, `promkit.static_server`): a prefix-aware router
  with path parameters and instrumentation hooks, and a static file server that
  sets the right content types.

## Installation

```
pip install promkit
```

## Examples

### Durations and timestamps

```python
from promkit.timemodel import parse_duration, time_from_unix

d = parse_duration("3w2d1h")
print(d)                 # 23d1h

t = time_from_unix(1136239445)
print(t.add(d).to_datetime())
```

### Query results as JSON

```python
from promkit.value import Vector

vec = Vector.from_json('[{"metric":{"__name__":"up"},"value":[1234.567,"1"]}]')
vec.sort()
print(vec.to_json())
```

### Logging

```python
import argparse
import sys

from promkit import logflags, promlog

config = promlog.Config()
parser = argparse.ArgumentParser()
logflags.add_flags(parser, config)
parser.parse_args(["--log.level", "debug"])

logger = promlog.new_dynamic(config, sys.stderr)
promlog.info(logger).log("msg", "started")

level = promlog.AllowedLevel()
level.set("warn")
logger.set_level(level)
```

### Routing

```python
from promkit.route import Router, param

def hello(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [f"hello {param(environ, 'name')}".encode()]

app = Router().with_prefix("/api")
app.get("/hello/:name", hello)
```

`app` is a WSGI application, so any WSGI server can run it.

## Running the tests

```
pip install -e ".[test]"
pytest
```