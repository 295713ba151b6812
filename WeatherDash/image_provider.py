"""Image provider for activity cards - degrades to placeholders instead of failing."""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import requests

from weather_data import ImageRef

PLACEHOLDER_URL = "https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=300&h=200&fit=crop"

SEARCH_TERMS: Dict[str, str] = {
    "sunny": "outdoor activities sunny day",
    "cloudy": "indoor activities museum cafe",
    "rainy": "indoor activities cozy cafe",
    "stormy": "indoor activities home",
    "snowy": "winter activities snow",
    "night": "nightlife evening activities",
}
DEFAULT_SEARCH_TERM = "activities"


def placeholder_images(count: int) -> List[ImageRef]:
    return [
        ImageRef(
            id=f"placeholder_{index}",
            url=PLACEHOLDER_URL,
            alt="Activity placeholder",
            photographer="Unsplash",
        )
        for index in range(count)
    ]


class ImageProviderBase(ABC):
    """Abstract source of theme images."""

    @abstractmethod
    def search(self, theme: str, count: int = 4) -> List[ImageRef]:
        """
        Find images for a weather theme (or free-form query).

        Never raises: failures return count placeholder images.
        """
        pass


class UnsplashImageProvider(ImageProviderBase):
    """Images from the Unsplash photo search API."""

    SEARCH_URL = "https://api.unsplash.com/search/photos"

    def __init__(self, access_key: Optional[str], timeout: int = 10):
        self.access_key = access_key
        self.timeout = timeout

    def search(self, theme: str, count: int = 4) -> List[ImageRef]:
        if not self.access_key:
            logging.warning("Unsplash access key not configured, using placeholder images")
            return placeholder_images(count)

        query = SEARCH_TERMS.get(theme, theme or DEFAULT_SEARCH_TERM)
        params = {
            "query": query,
            "per_page": count,
            "orientation": "landscape",
            "client_id": self.access_key,
        }

        try:
            logging.info(f"Searching Unsplash images for {query!r}")
            response = requests.get(self.SEARCH_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            images = [
                ImageRef(
                    id=photo["id"],
                    url=photo["urls"]["small"],
                    alt=photo.get("alt_description") or "Activity image",
                    photographer=photo["user"]["name"],
                )
                for photo in data["results"]
            ]
        except (requests.exceptions.RequestException, KeyError, TypeError, ValueError) as e:
            logging.warning(f"Could not fetch activity images: {e}")
            return placeholder_images(count)

        logging.info(f"Found {len(images)} image(s) for {query!r}")
        return images
