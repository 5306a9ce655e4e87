from Crypto.Cipher import AES


ZERO_KEY = bytes(16)
ZERO_IV_HEX = "0x" + "00" * 16
BASE_URL = "http://mocked/stream"

VALID_PLAIN = b"A" * 15 + b"\x01"
BAD_PLAIN = b"B" * 15 + bytes([20])


def encrypt(plain: bytes, key: bytes = ZERO_KEY, iv: bytes = bytes(16)) -> bytes:
    return AES.new(key, AES.MODE_CBC, iv).encrypt(plain)


def media_playlist(segments, key_uri="key.bin", iv=ZERO_IV_HEX, method="AES-128") -> str:
    lines = [
        "#EXTM3U",
        "#EXT-X-VERSION:3",
        "#EXT-X-TARGETDURATION:6",
        "#EXT-X-MEDIA-SEQUENCE:0",
    ]
    if method:
        attrs = f"METHOD={method}"
        if key_uri:
            attrs += f',URI="{key_uri}"'
        if iv:
            attrs += f",IV={iv}"
        lines.append(f"#EXT-X-KEY:{attrs}")
    for segment in segments:
        lines += ["#EXTINF:6.0,", segment]
    lines.append("#EXT-X-ENDLIST")
    return "\n".join(lines) + "\n"


MASTER_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:4
#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aud",NAME="English",LANGUAGE="en",URI="audio/en.m3u8"
#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aud",NAME="German",LANGUAGE="de",URI="audio/de.m3u8"
#EXT-X-STREAM-INF:BANDWIDTH=1280000,RESOLUTION=1280x720,AUDIO="aud"
video/720.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=640000,RESOLUTION=640x360
video/360.m3u8
#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=86000,URI="video/iframe.m3u8"
"""

IFRAME_FIRST_PLAYLIST = """#EXTM3U
#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=86000,URI="video/iframe.m3u8"
#EXT-X-STREAM-INF:BANDWIDTH=1280000
video/720.m3u8
#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=43000,URI="video/iframe360.m3u8"
#EXT-X-STREAM-INF:BANDWIDTH=640000
video/360.m3u8
"""
