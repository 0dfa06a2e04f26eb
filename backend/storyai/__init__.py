"""StoryAI backend - story authoring platform with per-author content encryption"""

__version__ = "1.0.0"
