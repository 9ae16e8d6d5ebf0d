"""Build tutorial documents by running their code blocks in Docker images."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Sequence, TextIO

from tutorialdocs.inputfile import InputFile, get_input_files_from_dir
from tutorialdocs.outputfile import parse_bash_run_cmd_from_output, write_output_files
from tutorialdocs.templatefile import (
    InputFileWithParsedContent,
    TemplateError,
    read_template_file,
)


class GenerateError(Exception):
    """Raised when generating the documents fails."""


@dataclass(frozen=True)
class Params:
    """Options that control a generation run."""

    tag_prefix: str = "docsgenerator"
    run_docker_build: bool = True
    suppress_docker_output: bool = False
    start_step: int = -1
    end_step: int = -1
    leave_generated_files: bool = False


def find_idx_with_ordering(want_ordering: int, files: Sequence[InputFile]) -> int:
    """Return the index of the file with ``want_ordering``, or -1."""
    return next(
        (idx for idx, current in enumerate(files) if current.ordering == want_ordering),
        -1,
    )


def _file_names(files: Sequence[InputFile]) -> str:
    return "[" + " ".join(f.template_file_name for f in files) + "]"


def generate(
    input_dir: str | os.PathLike,
    output_dir: str | os.PathLike,
    base_image: str,
    params: Params | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Process the templates in ``input_dir`` and write documents to ``output_dir``.

    Each template's code is run in a Docker image built on top of the image of
    the template before it; the first one builds on ``base_image``.
    """
    params = params or Params()
    stdout = stdout or sys.stdout

    files = get_input_files_from_dir(input_dir)
    stdout.write(f"Found {len(files)} template file(s)\n")
    if not files:
        raise GenerateError(f"no template files found in {os.fspath(input_dir)}")

    start_idx = 0
    if params.start_step != -1:
        start_idx = find_idx_with_ordering(params.start_step, files)
        if start_idx == -1:
            raise GenerateError(
                f"could not find specified start step {params.start_step} in {_file_names(files)}"
            )
    end_idx = len(files) - 1
    if params.end_step != -1:
        end_idx = find_idx_with_ordering(params.end_step, files)
        if end_idx == -1:
            raise GenerateError(
                f"could not find specified end step {params.end_step} in {_file_names(files)}"
            )

    num_files = end_idx - start_idx + 1
    stdout.write(
        f"Processing {num_files} template file(s) starting at number "
        f"{files[start_idx].ordering} and ending at number {files[end_idx].ordering}\n"
    )

    previous_files: list[InputFile | None] = [None, *files]
    selected = zip(previous_files[start_idx : end_idx + 1], files[start_idx : end_idx + 1])
    for count, (previous, input_file) in enumerate(selected, start=1):
        stdout.write(f"Processing {input_file.template_file_name} ({count}/{num_files})\n")
        from_image = base_image if previous is None else previous.docker_tag(params.tag_prefix)
        try:
            _process_file(input_dir, output_dir, input_file, from_image, params, stdout)
        except (GenerateError, TemplateError, OSError) as err:
            raise GenerateError(
                f"failed running task for template {input_file.template_file_name} "
                f"({count}/{num_files}): {err}"
            ) from err


def _process_file(
    input_dir: str | os.PathLike,
    output_dir: str | os.PathLike,
    input_file: InputFile,
    from_image: str,
    params: Params,
    stdout: TextIO,
) -> None:
    try:
        with_content = read_template_file(input_dir, input_file)
    except TemplateError as err:
        raise GenerateError(f"failed to read template file: {err}") from err

    stdout.write("Writing output files...\n")
    try:
        current_dir = write_output_files(output_dir, with_content, from_image)
    except OSError as err:
        raise GenerateError(
            f"failed to write output files for {input_file.template_file_name}: {err}"
        ) from err

    try:
        if params.run_docker_build:
            _build_and_render(output_dir, current_dir, with_content, params, stdout)
    except BaseException:
        if not params.leave_generated_files:
            shutil.rmtree(current_dir, ignore_errors=True)
        raise
    if not params.leave_generated_files:
        try:
            shutil.rmtree(current_dir)
        except OSError as err:
            raise GenerateError(f"failed to remove output directory: {err}") from err


def _build_and_render(
    output_dir: str | os.PathLike,
    current_dir: str,
    with_content: InputFileWithParsedContent,
    params: Params,
    stdout: TextIO,
) -> None:
    input_file = with_content.file_info
    parts = with_content.parsed_content.tutorial_code_parts

    stdout.write("Running Docker build...\n")
    try:
        build_output = run_docker_build(
            current_dir,
            input_file.docker_tag(params.tag_prefix),
            params.suppress_docker_output,
            stdout,
        )
    except GenerateError as err:
        raise GenerateError(
            f"docker build failed for {input_file.template_file_name}: {err}"
        ) from err

    run_cmds = parse_bash_run_cmd_from_output(build_output)
    if len(run_cmds) != len(parts):
        raise GenerateError(
            "number of command outputs did not match number of tutorial code parts: "
            f"{len(run_cmds)} != {len(parts)}"
        )

    # Show the original commands so that changes made by options do not appear.
    rendered_code = []
    for run_cmd, part in zip(run_cmds, parts):
        run_cmd.cmd = part.code
        rendered_code.append(str(run_cmd))

    try:
        rendered = with_content.parsed_content.render(rendered_code)
    except TemplateError as err:
        raise GenerateError(
            f"failed to render parsed content for {input_file.template_file_name}: {err}"
        ) from err

    rendered_path = os.path.join(output_dir, input_file.output_rendered_file_name())
    try:
        with open(rendered_path, "w", encoding="utf-8", newline="") as fh:
            fh.write(rendered)
    except OSError as err:
        raise GenerateError(
            f"failed to write rendered content for {input_file.template_file_name}: {err}"
        ) from err


def run_docker_build(
    work_dir: str | os.PathLike, tag: str, suppress_docker_output: bool, stdout: TextIO
) -> str:
    """Run ``docker build`` in ``work_dir`` and return its combined output."""
    cmd = ["docker", "build", "--no-cache", "-t", tag, "."]
    env = {**os.environ, "DOCKER_BUILDKIT": "0"}
    chunks: list[str] = []
    try:
        with subprocess.Popen(
            cmd,
            cwd=work_dir,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        ) as proc:
            assert proc.stdout is not None
            for line in proc.stdout:
                chunks.append(line)
                if not suppress_docker_output:
                    stdout.write(line)
        failure = f"exit status {proc.returncode}" if proc.returncode != 0 else None
    except OSError as err:
        failure = str(err)

    output = "".join(chunks)
    if failure is not None:
        message = f"command [{' '.join(cmd)}] failed"
        if suppress_docker_output:
            message += " with output " + output
        raise GenerateError(f"{message}: {failure}")
    return output