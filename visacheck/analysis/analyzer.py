"""AI-powered visa eligibility analyzer."""

from dataclasses import replace
from pathlib import Path

from visacheck.analysis.client_base import BaseAnalysisClient
from visacheck.analysis.models import EvaluationResult
from visacheck.analysis.prompt_builder import build_prompts
from visacheck.analysis.prompt_loader import load_prompt_template
from visacheck.analysis.validator import validate_llm_response
from visacheck.config.visa_data import VisaType
from visacheck.logging.logger import Log


class Analyzer:
    """Scores combined document text against a visa type's checkpoints.

    One chat completion per call: build prompts, call the provider, validate.
    """

    def __init__(
        self,
        *,
        client: BaseAnalysisClient,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        prompt_template_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))
        self._max_tokens = max_tokens
        self._prompt_template = load_prompt_template(prompt_template_path)

    def analyze(
        self,
        document_text: str,
        visa_type: VisaType,
        country_name: str,
    ) -> EvaluationResult:
        """Return the validated verdict with the raw reply kept as ``raw_analysis``.

        Raises:
            AnalysisError: on provider failure or a non-conforming reply.
        """
        prompts = build_prompts(self._prompt_template, document_text, visa_type, country_name)
        Log.debug(f"Analysis system prompt:\n{prompts.system_prompt}")

        Log.info(f"Calling AI provider for {country_name} {visa_type.code} analysis")
        raw_response = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            system_prompt=prompts.system_prompt,
            user_prompt=prompts.user_prompt,
        )
        Log.debug(f"AI raw response:\n{raw_response}")

        result = validate_llm_response(raw_response)
        Log.info(
            f"Analysis complete. Malicious: {result.is_malicious}, Score: {result.score}"
        )
        return replace(result, raw_analysis=raw_response)
