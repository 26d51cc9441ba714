"""Token usage accounting and cost estimates."""

import tiktoken

from .models import AnalysisStatus, Conversation

# Average of input and output pricing, per 1K tokens
COST_PER_1K_TOKENS = 0.01


def count_tokens(text: str, model: str = "cl100k_base") -> int:
    """Count tokens in text using tiktoken."""
    try:
        enc = tiktoken.get_encoding(model)
        return len(enc.encode(text))
    except Exception:
        # Fallback: rough estimate
        return len(text) // 4


def format_token_usage(tokens: int) -> str:
    if tokens < 1000:
        return f"{tokens} tokens"
    return f"{tokens / 1000:.1f}K tokens"


def estimate_cost(tokens: int) -> str:
    cost = (tokens / 1000) * COST_PER_1K_TOKENS
    return "<$0.01" if cost < 0.01 else f"${cost:.2f}"


def get_usage_stats(conversations: list[Conversation]) -> dict:
    """Aggregate counts and token totals over a conversation list."""
    status_counts = {status: 0 for status in AnalysisStatus}
    prompt_tokens = 0
    completion_tokens = 0
    for conv in conversations:
        status_counts[conv.status] += 1
        if conv.token_usage:
            prompt_tokens += conv.token_usage.prompt_tokens
            completion_tokens += conv.token_usage.completion_tokens

    total = prompt_tokens + completion_tokens
    return {
        "conversations": len(conversations),
        "status_counts": status_counts,
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": total,
        "estimated_cost": estimate_cost(total),
    }
