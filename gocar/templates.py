"""File templates written when scaffolding a project or its configuration."""
from __future__ import annotations

import json


MAIN_GO = """\
package main

import (
	"fmt"
	"time"
)

func main() {
	fmt.Println("Hello, gocar! A golang package manager.")
	fmt.Println(time.Now().Format("2006-01-02 15:04:05"))
}
"""


def simple_readme(name: str) -> str:
    return f"""\
# {name}

A Go project created with gocar.

## Build

```bash
# Debug build
gocar build

# Release build
gocar build --release
```

## Run

```bash
gocar run
```

## Output

- Debug build: `./bin/debug/<os>-<arch>/{name}`
- Release build: `./bin/release/<os>-<arch>/{name}` (built with -ldflags="-s -w" -trimpath)
"""


def project_readme(name: str) -> str:
    return f"""\
# {name}

A Go project created with gocar (project mode).

## Project Structure

```
{name}/
├── cmd/
│   └── server/
│       └── main.go      # Application entry point
├── internal/            # Private application code
├── pkg/                 # Public library code
├── test/                # Integration tests
├── bin/                 # Build output
├── go.mod
├── .gocar.toml
└── README.md
```

## Build

```bash
# Debug build
gocar build

# Release build
gocar build --release

# Cross-compile
gocar build --release --target linux/arm64
```

## Run

```bash
gocar run
```

## Output

- Debug build: `./bin/debug/<os>-<arch>/{name}`
- Release build: `./bin/release/<os>-<arch>/{name}` (CGO_ENABLED=0, -ldflags="-s -w" -trimpath)

## Directories

- **cmd/**: Main applications for this project
- **internal/**: Private application and library code (not importable by other projects)
- **pkg/**: Library code that can be used by external applications
- **test/**: Integration tests, black-box tests
"""


def gitignore(name: str) -> str:
    return f"""\
# Binaries
{name}
bin/
*.exe
*.exe~
*.dll
*.so
*.dylib

# Test binary
*.test

# Output of go coverage
*.out

# Dependency directories
vendor/

# IDE
.idea/
.vscode/
*.swp
*.swo

# OS files
.DS_Store
Thumbs.db
"""


def _toml_string(value: str) -> str:
    # a JSON string literal is also a valid TOML basic string
    return json.dumps(value, ensure_ascii=False)


def config_template(name: str, mode: str) -> str:
    entry = "cmd/server" if mode == "project" else "."
    return f"""\
# gocar project configuration

[project]
# Project layout: "simple" (single main.go) or "project" (cmd/ internal/ pkg/)
# Leave empty to detect it from the files on disk.
mode = {_toml_string(mode)}

# Binary name; leave empty to use the directory name.
name = {_toml_string(name)}

[build]
# Build entry, relative to the project root.
# simple mode defaults to ".", project mode to "cmd/server".
entry = "{entry}"

# Output directory; binaries land in <output>/<profile>/<os>-<arch>/.
output = "bin"

# Appended after the profile ldflags, e.g. "-X main.version=1.0.0"
ldflags = ""

# Build tags, merged with the profile tags.
# tags = ["jsoniter", "sonic"]

# Extra environment variables for go build.
# extra_env = ["GOPROXY=https://goproxy.cn"]

# Override the profile defaults for every build.
# trimpath = true
# cgo = false

[run]
# Run entry; leave empty to reuse build.entry.
entry = ""

# Default program arguments.
# args = ["-config", "config.yaml"]

# Build profiles. "debug" and "release" are built in; sections with those
# names override their defaults, other names must inherit from a profile.
# [profile.release]
# ldflags = "-s -w"
# trimpath = true
# cgo = false
#
# [profile.bench]
# inherits = "release"
# gcflags = "-m"

# Custom commands: gocar <name> runs the shell command in the project root.
# Built-in commands other than new and init can be overridden here.
[commands]
vet = "go vet ./..."
fmt = "go fmt ./..."
test = "go test -v ./..."
# lint = "golangci-lint run"
# proto = "protoc --go_out=. --go-grpc_out=. ./proto/*.proto"
"""
