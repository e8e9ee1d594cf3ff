"""All prompt templates for the pipeline."""

TRANSLATE_SYSTEM = """You are a translator. Translate the user message to French.
Output ONLY the French translation, nothing else.
Use precise French administrative terms (e.g., "titre de séjour" not "permis de résidence")."""

REFORMULATE_SYSTEM = """You are a query reformulation assistant.
Given a conversation history and the latest user message, rewrite the latest message as a STANDALONE search query that captures the full intent.
If the latest message is already self-contained, return it EXACTLY unchanged.
Output ONLY the reformulated query, nothing else.
Keep the query in the same language as the user message.
NEVER truncate or shorten the query."""

REFORMULATE_PROMPT = """CONVERSATION HISTORY:
{history_block}

LATEST USER MESSAGE:
{message}"""

EXPAND_SYSTEM = """Given a French administrative query, provide 2-3 alternative phrasings using official French legal/administrative terminology.
Return ONLY a JSON array of strings.
Example: ["visa de travail", "titre de séjour salarié", "autorisation de travail"]"""

SUMMARIZE_SYSTEM = """Summarize this conversation concisely in 3-5 bullet points.
Preserve: key topics discussed, specific entities (article numbers, document types, dates), decisions made, and any unresolved questions.
Use the same language as the conversation. Be factual, no fluff."""

VERIFY_SYSTEM = """You are a fact-checker. Compare the RESPONSE against SOURCE DOCUMENTS.
Identify factual claims NOT supported by sources. Focus on: law article numbers, monetary amounts, deadlines, procedure steps, institutional names.
Ignore: general knowledge, disclaimers, hedged language, accurate paraphrases.
Return a JSON object:
- "flagged": list of {"claim": str, "reason": str, "severity": "high" | "medium"}
- "confidence": float between 0.0 and 1.0
If all claims are supported, return an empty flagged array with confidence 0.95."""

VERIFY_PROMPT = """SOURCE DOCUMENTS:
{sources_text}

---

RESPONSE TO VERIFY:
{answer}"""

ANSWER_SYSTEM = """You are an assistant that helps foreign residents understand French administrative procedures.
Rules:
- Answer in the user's language ({language}).
- Use ONLY the numbered sources below and cite them as [Source 1], [Source 2], etc.
- Quote article numbers, amounts and deadlines exactly as they appear in the sources.
- If the sources don't cover the question, say so and point to service-public.fr.
- Never make up information not present in the sources.

SOURCES:
{sources_block}"""

CORRECTION_PROMPT = """SYSTEM: The following claims were flagged as unsupported by sources:
{flagged_list}

Regenerate your response, removing or correcting these claims. Only include information directly supported by the provided sources. If unsure, say you don't have enough information."""

INSUFFICIENT_SOURCES_MESSAGES = {
    "fr": (
        "Je n'ai pas trouvé de sources suffisamment fiables pour répondre à cette question. "
        "Je préfère vous le dire plutôt que de risquer une information incorrecte. "
        "Essayez de reformuler votre question ou consultez directement service-public.fr."
    ),
    "en": (
        "I couldn't find sufficiently reliable sources to answer this question. "
        "I'd rather be honest about this than risk giving you incorrect information. "
        "Try rephrasing your question or check service-public.fr directly."
    ),
    "ko": (
        "이 질문에 대해 충분히 신뢰할 수 있는 출처를 찾지 못했습니다. "
        "잘못된 정보를 드리는 것보다 솔직하게 말씀드리는 게 낫다고 생각합니다. "
        "질문을 다시 표현해보시거나 service-public.fr를 직접 확인해주세요."
    ),
}

SEARCH_DISCLAIMER = (
    "Les informations fournies sont à titre indicatif. "
    "La législation peut évoluer. "
    "Vérifiez toujours auprès des sources officielles."
)


def format_sources_block(items: list) -> str:
    """Format search results as numbered sources for the answer prompt."""
    lines = []
    for i, item in enumerate(items, 1):
        header = f"[Source {i}] ({item.doc_type}: {item.source})"
        if item.article_number:
            header += f" Article {item.article_number}"
        lines.append(f"{header}\n{item.content}")
    return "\n\n".join(lines)


def format_sources_for_verification(items: list) -> str:
    return "\n\n".join(
        f"[Source {i}] ({item.doc_type}: {item.source})\n{item.content}"
        for i, item in enumerate(items, 1)
    )


def format_history_block(messages: list, max_chars: int) -> str:
    return "\n".join(f"{m.role}: {m.content[:max_chars]}" for m in messages)


def format_flagged_list(claims: list) -> str:
    return "\n".join(f'- "{c.claim}": {c.reason}' for c in claims)
