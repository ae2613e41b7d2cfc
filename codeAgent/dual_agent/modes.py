"""Collaboration modes between the orchestrator and its coders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from codeAgent.config.settings import CollaborationMode

CODER_TOOLS = ("read-file", "write-file", "edit-file", "bash", "glob", "grep", "memo")

CODER_IDENTITY = """You are a coding sub-agent. Start coding as soon as you receive a task; do not explore.

## Workflow

### 1. Understand the context
- Read the [Orchestrator context] and [Shared memo] sections of the task
- Memo entries named [file:<path>] hold full file contents
- Need a function or class from another file? Use `memo read file:<path>` to confirm exact names and signatures
- Changing an existing file? read-file it first to get the current content

### 2. Code
- New file: write-file
- Existing file: read-file, then edit-file (enforced: unread files cannot be edited)
- Imports must match the paths used as memo keys; names must match the real code

### 3. Summarise
For every file you created or changed, record a summary:
  memo write file:<path> "purpose, key exports, anything other agents need to know"

### 4. Report the result in one sentence

## edit-file accuracy
- Copy old_string exactly from read-file output, never from memory
- Include 3-5 lines of context so the match is unique
- Indentation and whitespace must match exactly

## Do not
- explore (bash, glob, grep); the context is already in the memo and the task
- print analysis or plans; code directly
- change anything outside the task"""

CONTROLLED_CODER_PROMPT = (
    "You are a sub-agent dispatched by the orchestrator. Based on the code and requirements provided, "
    "return only the modified code. Do not operate on files yourself and do not make extra changes."
)


@dataclass(frozen=True, slots=True)
class ModeDefinition:
    name: CollaborationMode
    description: str
    coder_has_tools: bool
    coder_tool_names: Tuple[str, ...]
    coder_system_prompt: str
    orchestrator_guidance: str


DELEGATED_MODE = ModeDefinition(
    name="delegated",
    description="the orchestrator gathers context and delegates; the coder has the full tool set",
    coder_has_tools=True,
    coder_tool_names=CODER_TOOLS,
    coder_system_prompt=CODER_IDENTITY,
    orchestrator_guidance=(
        "Gather the context the coder needs (glob/grep, read-file, spawn-agents), record conclusions "
        "with memo write, then delegate one atomic step at a time."
    ),
)

AUTONOMOUS_MODE = ModeDefinition(
    name="autonomous",
    description="the orchestrator plans at a high level; the coder executes on its own",
    coder_has_tools=True,
    coder_tool_names=CODER_TOOLS,
    coder_system_prompt=CODER_IDENTITY,
    orchestrator_guidance=(
        "Keep upfront exploration light. Describe the goal and constraints and let the coder "
        "read and change files by itself; verify and report at the end."
    ),
)

CONTROLLED_MODE = ModeDefinition(
    name="controlled",
    description="the orchestrator manages everything; the coder only returns code",
    coder_has_tools=False,
    coder_tool_names=(),
    coder_system_prompt=CONTROLLED_CODER_PROMPT,
    orchestrator_guidance=(
        "The coder has no tools. Put the relevant code into the task or context, take the code it "
        "returns and apply it yourself with write-file/edit-file."
    ),
)

MODES: Dict[str, ModeDefinition] = {
    mode.name: mode for mode in (DELEGATED_MODE, AUTONOMOUS_MODE, CONTROLLED_MODE)
}


def get_mode(name: str) -> ModeDefinition:
    """Look up a mode; unknown names fall back to delegated."""
    return MODES.get(name, DELEGATED_MODE)
