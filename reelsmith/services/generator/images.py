"""AI image generation through fal's synchronous REST endpoint."""

from pathlib import Path

import httpx

from reelsmith.config.generation import ImageGenerationConfig
from reelsmith.core.exceptions import ImageGenerationError, MissingCredentialsError
from reelsmith.core.logging import get_logger
from reelsmith.infrastructure.http_client import HTTPClient

logger = get_logger(__name__)


class ImageGenerator:
    """Generates vertical stills with a fal text-to-image model.

    Images are generated one at a time and downloaded into the temp
    directory as ``{file_stem}_image_{index}.png``.

    Example:
        >>> generator = ImageGenerator(http_client, fal_key="...")
        >>> paths = await generator.generate_all(["photo realistic ..."], "abc", Path("temp"))
    """

    def __init__(
        self,
        http_client: HTTPClient,
        fal_key: str,
        config: ImageGenerationConfig | None = None,
    ) -> None:
        self.http_client = http_client
        self.fal_key = fal_key
        self.config = config or ImageGenerationConfig()

    def build_request(self, prompt: str) -> dict[str, object]:
        return {
            "prompt": prompt,
            "image_size": {"width": self.config.width, "height": self.config.height},
            "num_inference_steps": self.config.num_inference_steps,
            "num_images": 1,
            "enable_safety_checker": self.config.enable_safety_checker,
        }

    async def generate(self, prompt: str, file_stem: str, index: int, output_dir: Path) -> Path:
        """Generate and download one image.

        Args:
            prompt: Image prompt
            file_stem: Base name of the output file
            index: Position of the image in the video
            output_dir: Download directory

        Returns:
            Local PNG path

        Raises:
            MissingCredentialsError: If no fal key is configured
            ImageGenerationError: If generation or download fails
        """
        if not self.fal_key:
            raise MissingCredentialsError("fal", config_key="FAL_KEY")

        url = f"{self.config.endpoint.rstrip('/')}/{self.config.model}"
        logger.info("Generating image", index=index, model=self.config.model)

        try:
            response = await self.http_client.post(
                url,
                json=self.build_request(prompt),
                headers={"Authorization": f"Key {self.fal_key}"},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            image_url = response.json()["images"][0]["url"]
        except httpx.HTTPError as e:
            raise ImageGenerationError(
                f"fal request failed: {e}", model=self.config.model, prompt=prompt
            ) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ImageGenerationError(
                f"Unexpected fal response: {e}", model=self.config.model, prompt=prompt
            ) from e

        output_dir.mkdir(parents=True, exist_ok=True)
        local_path = output_dir / f"{file_stem}_image_{index}.png"
        try:
            download = await self.http_client.get(image_url, timeout=self.config.timeout)
            download.raise_for_status()
        except httpx.HTTPError as e:
            raise ImageGenerationError(
                f"Failed to download image: {e}", model=self.config.model, prompt=prompt
            ) from e
        local_path.write_bytes(download.content)

        logger.info("Image downloaded", index=index, path=str(local_path))
        return local_path

    async def generate_all(
        self,
        prompts: list[str],
        file_stem: str,
        output_dir: Path,
    ) -> list[Path]:
        """Generate every image sequentially, in prompt order."""
        return [
            await self.generate(prompt, file_stem, index, output_dir)
            for index, prompt in enumerate(prompts)
        ]


__all__ = ["ImageGenerator"]
