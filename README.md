# tutorialdocs

`tutorialdocs` turns tutorial templates into finished documents. Each template holds
shell snippets marked as tutorial code. The tool runs those snippets step by step inside
Docker images, then writes the documents back out with every command followed by the
output it actually produced.

## Installation

```
pip install .
```

Running the snippets requires a working `docker` command on the `PATH`. The builds run
with `DOCKER_BUILDKIT=0`.

## Templates

All template files sit in one directory and are named
`<ordering>_<name>[.<ext>].tmpl`, for example `1_add.md.tmpl` or `2_build.md.tmpl`.
Files in that directory that do not match this pattern are ignored. The ordering numbers
must be unique, and so must the names. Otherwise an `InputFileError` is raised.

The steps run in ordering order. The image for each step is built on top of the image of
the step before it. The first step starts from the base image you give. Each step's image
is tagged `<tag-prefix>:<name>`. The rendered document for `1_add.md.tmpl` is written to
`add.md` in the output directory.

Inside a template, tutorial code goes between two marker lines:

    ```START_TUTORIAL_CODE
    mkdir "testDir"
    ```END_TUTORIAL_CODE

A block that is expected to fail carries an option after a vertical bar. The tool then
runs the command with `|| true` appended:

    ```START_TUTORIAL_CODE|fail=true
    ls does-not-exist
    ```END_TUTORIAL_CODE

`fail` is the only option. An unknown option raises a `TemplateError`.

In the rendered document:

- every command is shown as `➜ <command>`, followed by its output;
- the markers become ordinary code fences;
- adjacent blocks are merged into one.

## Usage

```
docs-generator --input-dir templates --output-dir docs --base-image ubuntu:22.04
```

### Options

| Option | Required | Description |
| --- | --- | --- |
| `--input-dir` | yes | Directory that holds the `.tmpl` files. |
| `--output-dir` | yes | Directory the rendered documents are written to. |
| `--base-image` | yes | Image the first step builds on. |
| `--tag-prefix` | no | Prefix of the Docker tags for the step images. Default: `docsgenerator`. |
| `--run-docker-build [BOOL]` | no | Whether to run `docker build`. On by default. With `--run-docker-build false`, only the intermediate Dockerfile and script are written, and no document is rendered. |
| `--suppress-docker-output [BOOL]` | no | Hide the output of `docker build`. If a build fails, its output is included in the error message. |
| `--start-step N` | no | Ordering number of the first step to process. |
| `--end-step N` | no | Ordering number of the last step to process. |
| `--leave-generated-files [BOOL]` | no | Keep the generated `<ordering>_<name>` directories. Each holds a `Dockerfile` and a `run-<name>.sh` script. By default they are removed after each step. |

A boolean option given without a value means `true`. To set it explicitly, use one of
`1`, `t`, `true`, `0`, `f` or `false` (upper-case forms of `t`, `true`, `f` and `false`
are accepted too).

The command exits with status 1 and prints `Error: ...` when the arguments are invalid
or a step fails. This includes the case where the input directory holds no template
files.

## Library use

```python
import sys
from tutorialdocs.generator import Params, generate

generate("templates", "docs", "ubuntu:22.04", Params(tag_prefix="mydocs"), sys.stdout)
```

The lower-level pieces are available as modules:

- **`tutorialdocs.inputfile`**
  - `new_input_file`
  - `get_input_files`
  - `get_input_files_from_dir`
- **`tutorialdocs.templatefile`**
  - `parse_template_file`
  - `ParsedTemplateFile.render`
  - `read_template_file`
- **`tutorialdocs.outputfile`**
  - `bash_script`
  - `docker_file`
  - `write_output_files`
  - `parse_bash_run_cmd_from_output`

## Artifacts

The `tutorialdocs.artifacts` package holds helpers for fetching versioned artifacts:

- `Locator`, `LocatorParam`, `LocatorWithResolverParam` and `OSArch` describe what to
  fetch.
- `TemplateResolver` builds a source location from a template, then copies the file from
  that location to the destination. The source may be an `http`/`https` URL, a `file` URL
  or a local path. An example template:
  `https://host.example.com/{{GroupPath}}/{{Product}}-{{OS}}-{{Arch}}-{{Version}}`
  - The template can use `Group`, `GroupPath`, `GroupParts`, `Product`, `Version`, `OS`
    and `Arch`.
  - It can also use `index`, as in `{{index GroupParts 1}}`.
- `resolve_artifact` tries the locator's own resolver, or else the default resolvers in
  turn. It then checks the result against the SHA-256 checksum recorded for the platform,
  if there is one.
- `resolve_artifact_tgz` does the same for a gzipped tar that holds a single file. It
  checksums the file inside the archive.
- `copy_single_file_tgz_content`, `plugin_tgz_content_hash`,
  `plugin_tgz_file_content_hash` and `sha256_checksum_file` are the underlying helpers.

Failures raise `ResolveError`. Template problems raise `TemplateResolverError`, which is a
subclass of `ResolveError`.

## What it does not do

The artifact helpers are a library only. No command uses them, and they do not cache,
install or unpack artifacts: they fetch a single file and verify it.