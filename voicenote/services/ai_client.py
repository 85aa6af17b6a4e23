import json
import os
import traceback
from openai import OpenAI

from voicenote import config
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

# OpenAI client (lazy loading - created on first use)
_openai_client = None


def create_openai_client(api_key):
    """
    Create an OpenAI client with proper error handling.

    Args:
        api_key: The OpenAI API key

    Returns:
        The OpenAI client or None if initialization fails
    """
    try:
        return OpenAI(api_key=api_key, timeout=config.OPENAI_TIMEOUT)
    except Exception as e:
        err_msg = f"ERROR in create_openai_client: {e}\n with traceback:\n{traceback.format_exc()}"
        logger.error(err_msg)
        return None


def get_openai_client():
    """
    Get the OpenAI client, initializing it if necessary.

    Returns:
        The OpenAI client, or None when no API key is configured
    """
    global _openai_client
    if _openai_client is None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            logger.warning("OPENAI_API_KEY not found in environment variables")
            return None

        logger.info("Initializing OpenAI client")
        _openai_client = create_openai_client(api_key)
        if _openai_client:
            logger.info("OpenAI client initialized successfully")
        else:
            logger.error("Failed to initialize OpenAI client")

    return _openai_client


def ask_openai_with_format(messages, jsonformat, model=None, temperature=0.3):
    """Chat completion constrained to a JSON schema; returns the parsed object."""
    client = get_openai_client()
    if client is None:
        raise RuntimeError("OpenAI client is not available")

    completion = client.chat.completions.create(
        model=model or config.OPENAI_API_NOTE_MODEL,
        temperature=temperature,
        messages=messages,
        response_format={
            "type": "json_schema",
            "json_schema": {
                "name": "structured_response",
                "strict": True,
                "schema": jsonformat,
            },
        },
    )
    raw_response = completion.choices[0].message.content
    return json.loads(raw_response)
