from diffreduce.infra.llm.client import LLMClient
from diffreduce.infra.llm.summary_generator import OpenAISummaryGenerator, build_system_prompt

__all__ = ["LLMClient", "OpenAISummaryGenerator", "build_system_prompt"]
