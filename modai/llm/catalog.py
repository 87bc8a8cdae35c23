"""Static registry of the models offered in the model picker."""

from typing import Literal, Optional

from pydantic import BaseModel


class ModelPricing(BaseModel):
    input: float  # USD per 1K prompt tokens
    output: float  # USD per 1K completion tokens


class AIModel(BaseModel):
    id: str
    name: str
    provider: str
    description: str
    context_window: int
    pricing: ModelPricing
    capabilities: list[str]
    category: Literal["chat", "vision", "code", "reasoning"]


def _model(id, name, provider, description, context_window, price_in, price_out, capabilities, category):
    return AIModel(
        id=id,
        name=name,
        provider=provider,
        description=description,
        context_window=context_window,
        pricing=ModelPricing(input=price_in, output=price_out),
        capabilities=capabilities,
        category=category,
    )


AI_MODELS: list[AIModel] = [
    # Served through OpenRouter
    _model("deepseek/deepseek-r1-0528:free", "DeepSeek R1", "DeepSeek",
           "Advanced reasoning model with strong analytical capabilities",
           32768, 0, 0, ["reasoning", "analysis", "math", "coding"], "reasoning"),
    _model("anthropic/claude-sonnet-4", "Claude Sonnet 4", "Anthropic",
           "Latest Claude model with enhanced reasoning and vision",
           200000, 0.003, 0.015, ["reasoning", "vision", "coding", "analysis"], "vision"),
    _model("moonshotai/kimi-vl-a3b-thinking", "Kimi VL A3B Thinking", "Moonshot AI",
           "Vision-language model with thinking capabilities",
           128000, 0.002, 0.008, ["vision", "reasoning", "multimodal"], "vision"),
    _model("openai/gpt-4o", "GPT-4o", "OpenAI",
           "Multimodal flagship model with vision and reasoning",
           128000, 0.005, 0.015, ["reasoning", "vision", "coding", "multimodal"], "vision"),
    _model("google/gemini-pro-1.5", "Gemini Pro 1.5", "Google",
           "Large context window model with multimodal capabilities",
           1000000, 0.001, 0.003, ["reasoning", "vision", "long-context"], "vision"),
    _model("meta-llama/llama-3.2-90b-vision-instruct", "Llama 3.2 90B Vision", "Meta",
           "Open-source vision model with strong performance",
           128000, 0.0009, 0.0009, ["vision", "reasoning", "open-source"], "vision"),
    # Served through Groq
    _model("llama-3.3-70b-versatile", "Llama 3.3 70B Versatile", "Groq",
           "Ultra-fast inference with Groq hardware acceleration",
           32768, 0.0005, 0.0008, ["fast-inference", "reasoning", "coding"], "chat"),
    _model("llama-3.1-8b-instant", "Llama 3.1 8B Instant", "Groq",
           "Lightning-fast responses with Groq optimization",
           131072, 0.0001, 0.0001, ["ultra-fast", "efficient", "coding"], "chat"),
    _model("llama3-70b-8192", "Llama 3 70B", "Groq",
           "High-performance model with Groq acceleration",
           8192, 0.0005, 0.0008, ["fast-inference", "reasoning"], "chat"),
    _model("llama3-8b-8192", "Llama 3 8B", "Groq",
           "Efficient model optimized for speed",
           8192, 0.0001, 0.0001, ["ultra-fast", "efficient"], "chat"),
    _model("gemma2-9b-it", "Gemma 2 9B IT", "Groq",
           "Instruction-tuned model with fast inference",
           8192, 0.0002, 0.0002, ["fast-inference", "instruction-following"], "chat"),
    # More OpenRouter models
    _model("anthropic/claude-3.5-haiku", "Claude 3.5 Haiku", "Anthropic",
           "Fast and efficient Claude model",
           200000, 0.001, 0.005, ["fast", "efficient", "reasoning"], "chat"),
    _model("openai/gpt-4o-mini", "GPT-4o Mini", "OpenAI",
           "Compact version of GPT-4o with good performance",
           128000, 0.00015, 0.0006, ["efficient", "reasoning", "coding"], "chat"),
    _model("google/gemini-flash-1.5", "Gemini Flash 1.5", "Google",
           "Fast Gemini model optimized for speed",
           1000000, 0.00075, 0.003, ["fast", "long-context", "multimodal"], "chat"),
    _model("mistralai/mistral-large", "Mistral Large", "Mistral AI",
           "Large-scale model with strong performance",
           128000, 0.004, 0.012, ["reasoning", "multilingual", "coding"], "chat"),
    _model("cohere/command-r-plus", "Command R+", "Cohere",
           "Advanced command-following model",
           128000, 0.003, 0.015, ["reasoning", "tool-use", "rag"], "chat"),
]

_BY_ID: dict[str, AIModel] = {m.id: m for m in AI_MODELS}


def get_model_by_id(model_id: str) -> Optional[AIModel]:
    return _BY_ID.get(model_id)


def get_models_by_provider(provider: str) -> list[AIModel]:
    return [m for m in AI_MODELS if m.provider == provider]


def get_models_by_category(category: str) -> list[AIModel]:
    return [m for m in AI_MODELS if m.category == category]


def get_fastest_models() -> list[AIModel]:
    return [
        m for m in AI_MODELS
        if "fast-inference" in m.capabilities
        or "ultra-fast" in m.capabilities
        or m.provider == "Groq"
    ]


def get_cheapest_models() -> list[AIModel]:
    return [m for m in AI_MODELS if m.pricing.input <= 0.001 and m.pricing.output <= 0.001]


def get_vision_models() -> list[AIModel]:
    return [
        m for m in AI_MODELS
        if "vision" in m.capabilities or "multimodal" in m.capabilities
    ]
