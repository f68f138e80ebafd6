"""Article Pipeline - turn article links into summaries, audio and video.

A submitted article URL is processed in the background: the article is
extracted and summarized, titled, given a thumbnail and, depending on the
requested format, narrated or turned into a short generated video. Clients
poll the persisted article record until it reaches ``ready`` or ``failed``.
"""

__version__ = "0.1.0"
