import codecs
from typing import AsyncIterable, AsyncIterator


async def decode_stream(source: AsyncIterable[bytes], encoding: str = "utf-8") -> AsyncIterator[str]:
    """Decode a byte stream into text fragments as the bytes arrive.

    A multi-byte character split across chunks is held back until its
    remaining bytes arrive; the decoder is flushed once at end-of-stream.
    Empty fragments are skipped.
    """
    decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
    async for chunk in source:
        if not chunk:
            continue
        text = decoder.decode(chunk)
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail
