"""Rewrite a show's feed snapshot so every link points at the remote mirror."""

from collections.abc import Mapping
import logging
from pathlib import Path

from lxml import etree

from ..archiver.cover_downloader import cover_extension
from ..archiver.types import FileSummary
from ..exceptions import EpisodeDataError, RemoteSyncError
from ..feed.feed_parser import ATOM_NS, ITUNES_NS, safe_parser
from ..identity import normalize_identity
from ..path_manager import PODCAST_RSS, PathManager

logger = logging.getLogger(__name__)

_NAMESPACES = {"atom": ATOM_NS, "itunes": ITUNES_NS}


class RssRewriter:
    """Produce ``podcast.rss`` from ``podcast.xml`` and the show's manifest.

    The self link, the cover image URLs and each episode's enclosure are
    pointed at the remote item. Episodes missing from the manifest or with
    an unknown actual length are logged and left as they are.

    Attributes:
        _paths: Source of remote URLs.
    """

    def __init__(self, paths: PathManager):
        self._paths = paths

    def _rewrite_channel(
        self, channel: etree._Element, show: str, ia_identifier: str
    ) -> None:
        atom_link = channel.find("atom:link", namespaces=_NAMESPACES)
        if atom_link is not None:
            atom_link.set(
                "href", self._paths.remote_download_url(ia_identifier, PODCAST_RSS)
            )
        else:
            logger.warning("Feed has no atom:link.", extra={"show": show})

        image_url = channel.find("image/url")
        if image_url is None or not (image_url.text or "").strip():
            logger.warning("Feed has no image url.", extra={"show": show})
            return
        ext = cover_extension(image_url.text.strip())
        cover_url = self._paths.remote_download_url(ia_identifier, f"cover{ext}")
        image_url.text = cover_url

        itunes_image = channel.find("itunes:image", namespaces=_NAMESPACES)
        if itunes_image is not None:
            itunes_image.set("href", cover_url)
        else:
            logger.warning("Feed has no itunes:image.", extra={"show": show})

    def _rewrite_item(
        self,
        item: etree._Element,
        show: str,
        ia_identifier: str,
        manifest: Mapping[str, FileSummary],
    ) -> bool:
        """Point one item's enclosure at the mirror; return whether it was rewritten."""
        raw_identifier = (item.findtext("guid") or "").strip()
        title = item.findtext("title")
        log_params = {"show": show, "title": title}
        if not raw_identifier:
            logger.error("Feed item has no guid.", extra=log_params)
            return False
        try:
            identity = normalize_identity(raw_identifier, title)
        except EpisodeDataError as e:
            logger.error("Feed item has an invalid guid.", extra=log_params, exc_info=e)
            return False

        log_params["identity"] = identity
        summary = manifest.get(identity)
        if summary is None:
            logger.error("Feed item is not in the manifest.", extra=log_params)
            return False
        if summary.actual_length < 0:
            logger.error(
                "Feed item has no local file length.",
                extra={**log_params, "file_name": summary.local_filename},
            )
            return False

        enclosure = item.find("enclosure")
        if enclosure is None or enclosure.get("url") is None:
            logger.error("Feed item has no enclosure.", extra=log_params)
            return False
        file_name = Path(summary.local_filename).name
        enclosure.set("url", self._paths.remote_download_url(ia_identifier, file_name))
        enclosure.set("length", str(summary.actual_length))
        return True

    def rewrite(
        self,
        feed_xml: bytes,
        show: str,
        ia_identifier: str,
        summaries: list[FileSummary],
    ) -> bytes:
        """Return the rewritten feed document.

        Raises:
            RemoteSyncError: If the snapshot is not a parseable RSS feed.
        """
        try:
            root = etree.fromstring(feed_xml, parser=safe_parser())
        except etree.XMLSyntaxError as e:
            raise RemoteSyncError(
                "Failed to parse feed snapshot.", show=show, file_name="podcast.xml"
            ) from e
        channel = root.find("channel")
        if root.tag != "rss" or channel is None:
            raise RemoteSyncError(
                "Feed snapshot has no rss channel.", show=show, file_name="podcast.xml"
            )

        manifest = {summary.identity: summary for summary in summaries}
        self._rewrite_channel(channel, show, ia_identifier)

        items = channel.findall("item")
        rewritten = sum(
            self._rewrite_item(item, show, ia_identifier, manifest) for item in items
        )
        logger.info(
            "Feed rewritten for remote mirror.",
            extra={
                "show": show,
                "item_count": len(items),
                "rewritten_count": rewritten,
            },
        )
        return etree.tostring(root, xml_declaration=True, encoding="utf-8")
