"""Multimodal message construction and image alt-text generation."""

from typing import Any, Callable, Literal, Union

from docindex.entities import ImageNode
from docindex.observability.logging import get_logger
from docindex.providers.base import LLMProvider, ProviderError

logger = get_logger(__name__)

PromptLike = Union[str, Callable[[], str]]
ImageDetail = Literal["low", "high", "auto"]


def create_message_content(
    prompt: PromptLike,
    images: list[ImageNode],
    detail: ImageDetail = "auto",
) -> list[dict[str, Any]]:
    """Build an OpenAI content-part list from a prompt and images.

    Args:
        prompt: Prompt text, or a zero-argument callable returning it
        images: Images to attach, in order
        detail: Vision detail level passed with each image

    Returns:
        ``[{"type": "text", ...}, {"type": "image_url", ...}, ...]``

    Raises:
        FileNotFoundError: If an image file does not exist
    """
    text = prompt() if callable(prompt) else prompt

    content: list[dict[str, Any]] = [{"type": "text", "text": text}]
    for image in images:
        content.append(
            {
                "type": "image_url",
                "image_url": {"url": image.to_data_url(), "detail": detail},
            }
        )
    return content


async def describe_image(
    llm: LLMProvider,
    image: ImageNode,
    prompt: PromptLike,
    detail: ImageDetail = "auto",
) -> str:
    """Ask a multimodal model for a textual description of one image.

    Raises:
        ProviderError: If the model call fails or returns no text
    """
    content = create_message_content(prompt, [image], detail=detail)
    text = (await llm.complete(content)).strip()

    if not text:
        raise ProviderError(
            message=f"Model returned an empty description for {image.image_path}",
            provider=llm.config.provider_type,
        )

    logger.info("image_described", image_path=image.image_path, chars=len(text))
    return text
