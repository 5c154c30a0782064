from __future__ import annotations

from typing import Any

import orjson

FORM_GENERATOR_SYSTEM = (
    "You are an AI form generator that takes a description of a form and "
    "returns a JSON configuration for the form. Respond with JSON only."
)

FORM_DESIGNER_SYSTEM = (
    "You are an AI expert in form design. Respond with JSON only, without "
    "comments or explanations."
)

DATA_ANALYST_SYSTEM = (
    "You are a data analyst AI assistant. Provide concise, one-line insights "
    'without using the word "dataset". Focus on trends, patterns, and key findings.'
)

ELEMENT_SHAPE = """{
  "formConfig": [
    {
      "type": "text|textarea|email|password|number|date|url|tel|select|radio|checkbox",
      "label": "Label shown to the respondent",
      "name": "identifier_safe_name",
      "options": ["Only for select and radio"],
      "placeholder": "Optional hint",
      "required": true
    }
  ]
}"""


def _pretty(value: Any) -> str:
    return orjson.dumps(value, option=orjson.OPT_INDENT_2, default=str).decode("utf-8")


def form_generation_prompt(description: str) -> str:
    return f"""The form configuration should be an array of form elements, where each element has a type, label, and name.
If the element is a select or radio, it should also have an options field.
Names must be unique and contain only letters, digits and underscores.

Return your response in this JSON format:
{ELEMENT_SHAPE}

Description: {description}
"""


def form_improvement_prompt(config: dict[str, Any], request: str) -> str:
    current = _pretty(config.get("elements", []))
    return f"""Given the current form configuration and the user's prompt, improve the form configuration.

Current Form Configuration:
```json
{current}
```

Improvement Prompt: {request}

Return the complete improved configuration in this JSON format:
{ELEMENT_SHAPE}
"""


def analysis_prompt(records: list[dict[str, Any]]) -> str:
    data = _pretty(records)
    return f"""Analyze this JSON data and provide:
1. 2-3 one-line insights about key findings (avoid using the word "dataset")
2. 1-2 chart recommendations with clear categorization

For each chart, specify:
- Chart type (bar, line, pie, area)
- Title
- Category being analyzed (e.g., "Sales by Product Category", "Revenue by Month")
- Exact data structure for visualization, including categories/labels and numerical values

Return your response in this JSON format:
{{
  "insights": [
    {{"title": "Brief, one-line insight", "description": "One-sentence explanation"}}
  ],
  "charts": [
    {{
      "type": "bar|line|pie|area",
      "title": "Chart title",
      "description": "What this chart shows",
      "category": "Main category being analyzed",
      "dataPoints": [{{"name": "Category name", "value": 123}}]
    }}
  ]
}}

Here's the data to analyze:
{data}
"""


def title_from_prompt(description: str, words: int = 5) -> str:
    return " ".join(description.split()[:words])
