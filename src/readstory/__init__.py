"""ReadStory: crawl serialized fiction into a story/chapter database."""

__version__ = "0.1.0"
