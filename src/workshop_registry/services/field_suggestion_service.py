"""LLM-assisted suggestions for registration form fields"""

import logging
from typing import List, Optional

from workshop_registry.backends.llm_client import LLMClient
from workshop_registry.errors import InvalidFieldError
from workshop_registry.models.form_config import FieldDefinition, RegistrationFormConfig
from workshop_registry.models.workshop import Workshop
from workshop_registry.services.form_schema_service import FormSchema
from workshop_registry.system_prompts import FIELD_SUGGESTION_PROMPT

logger = logging.getLogger(__name__)

MAX_SUGGESTED_FIELDS = 10


class FieldSuggestionService:
    """Asks the LLM for candidate fields and keeps the ones that pass authoring rules"""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    def _build_prompt(
        self, workshop: Workshop, prompt: str, existing_fields: List[FieldDefinition]
    ) -> str:
        existing = (
            "\n".join(f"- {f.label} ({f.type.value})" for f in existing_fields)
            or "- none"
        )
        return f"""Workshop information:
- Title: {workshop.title}
- Description: {workshop.description or 'N/A'}
- Capacity: {workshop.capacity or 'unlimited'}

Existing fields in the form:
{existing}

Organizer request: {prompt}"""

    async def suggest_fields(
        self,
        workshop: Workshop,
        prompt: str,
        existing_fields: Optional[List[FieldDefinition]] = None,
    ) -> List[FieldDefinition]:
        """
        Propose new fields for a workshop's registration form.

        Suggestions are validated exactly like manually authored fields;
        invalid ones are dropped. Nothing is saved.

        Args:
            workshop: Workshop the form belongs to
            prompt: Organizer's description of what to collect
            existing_fields: Custom fields already on the form

        Returns:
            Valid suggested fields with fresh ids

        Raises:
            ValueError: If the prompt is empty or the LLM reply is unusable
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt is required")

        existing_fields = existing_fields or []
        data = await self.llm_client.process_json_instruction(
            messages=[
                {
                    "role": "user",
                    "content": self._build_prompt(workshop, prompt, existing_fields),
                }
            ],
            system=FIELD_SUGGESTION_PROMPT,
            max_tokens=1500,
        )

        raw_fields = data.get("fields")
        if not isinstance(raw_fields, list):
            raise ValueError("Invalid response format: missing fields array")

        # Validate against the current form so ids never collide with existing ones
        schema = FormSchema(
            RegistrationFormConfig(
                use_default_fields=workshop.use_default_fields,
                custom_fields=existing_fields,
            )
        )
        suggestions: List[FieldDefinition] = []
        for raw in raw_fields[:MAX_SUGGESTED_FIELDS]:
            if not isinstance(raw, dict):
                continue
            # The model does not get to pick ids
            candidate = {k: v for k, v in raw.items() if k != "id"}
            if "defaultValue" in candidate:
                candidate["default_value"] = candidate.pop("defaultValue")
            try:
                suggestions.append(schema.add_field(candidate))
            except InvalidFieldError as e:
                logger.warning(f"Dropping suggested field {raw.get('label')!r}: {e}")

        logger.info(
            f"Suggested {len(suggestions)} of {len(raw_fields)} fields for workshop {workshop.id}"
        )
        return suggestions
