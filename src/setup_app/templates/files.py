"""Template files pushed into every new repository.

Files are created one by one in list order. The setup-labels workflow runs
on push and reads the APP_ID / APP_PRIVATE_KEY secrets, so it must be
pushed last, after the secrets exist.
"""

import base64
from dataclasses import dataclass
from typing import List

from src.setup_app.templates.labels import default_labels

SETUP_LABELS_WORKFLOW_PATH = ".github/workflows/setup-labels.yml"


@dataclass(frozen=True)
class TemplateFile:
    """A file to create in a repository.

    Attributes:
        path: Path inside the repository.
        content: File text.
        message: Commit message for the creating commit.
    """

    path: str
    content: str
    message: str

    def encoded_content(self) -> str:
        """Base64 of the UTF-8 content, as the contents API expects."""
        return base64.b64encode(self.content.encode("utf-8")).decode("ascii")


_WORKFLOW_TEMPLATE = """name: setup-labels

on:
  push:
    branches:
      - main

jobs:
  setup-labels:
    runs-on: ubuntu-latest
    steps:
      - name: Generate GitHub App Token
        id: generate-token
        uses: actions/create-github-app-token@v1
        with:
          app-id: ${{ secrets.APP_ID }}
          private-key: ${{ secrets.APP_PRIVATE_KEY }}

      - name: Check if already setup
        id: check
        run: |
          if gh label list --repo ${{ github.repository }} --json name --jq '.[].name' | grep -q "^refactor$"; then
            echo "skip=true" >> $GITHUB_OUTPUT
          else
            echo "skip=false" >> $GITHUB_OUTPUT
          fi
        env:
          GH_TOKEN: ${{ steps.generate-token.outputs.token }}

      - name: Delete all existing labels
        if: steps.check.outputs.skip == 'false'
        run: |
          gh label list --repo ${{ github.repository }} --json name --jq '.[].name' | while read -r label; do
            gh label delete "$label" --repo ${{ github.repository }} --yes
          done
        env:
          GH_TOKEN: ${{ steps.generate-token.outputs.token }}

      - name: Create labels
        if: steps.check.outputs.skip == 'false'
        run: |
          labels=(
__LABELS__
          )

          for label in "${labels[@]}"; do
            IFS='|' read -r name color description <<< "$label"
            gh label create "$name" --repo ${{ github.repository }} --color "$color" --description "$description"
          done
        env:
          GH_TOKEN: ${{ steps.generate-token.outputs.token }}
"""


def setup_labels_workflow() -> TemplateFile:
    """Workflow that replaces the stock labels with the default taxonomy."""
    label_lines = "\n".join(
        f'            "{label.name}|{label.color}|{label.description}"'
        for label in default_labels()
    )
    return TemplateFile(
        path=SETUP_LABELS_WORKFLOW_PATH,
        content=_WORKFLOW_TEMPLATE.replace("__LABELS__", label_lines),
        message="Add setup-labels workflow",
    )


def default_license_file() -> TemplateFile:
    return TemplateFile(
        path="LICENSE",
        message="Add LICENSE file",
        content="""MIT License

Copyright (c) [year] [fullname]

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
""",
    )


def default_contributing_file() -> TemplateFile:
    return TemplateFile(
        path="CONTRIBUTING.md",
        message="Add CONTRIBUTING.md file",
        content="""# Contributing Guide

## Development Flow

1. Open an issue or pick an existing one
2. Create a working branch from `main`
3. Implement the change
4. Open a pull request

## Branch Naming

```
fix/[feature]     # new feature
bug/[fix]         # bug fix
docs/[topic]      # documentation
ref/[topic]       # refactoring
```

## Commit Messages

```
[type]/[change]

fix/add a new feature
bug/fix a bug
docs/update documentation
ref/refactor code
test/add or update tests
other/build or configuration changes
```

## Pull Requests

- Reference the related issue number
- Follow the pull request template
- Review your own changes before requesting review

## Code Style

- Follow the existing style of the project
""",
    )


def default_template_files() -> List[TemplateFile]:
    """Template files in push order; the workflow comes last."""
    return [
        default_license_file(),
        default_contributing_file(),
        setup_labels_workflow(),
    ]
