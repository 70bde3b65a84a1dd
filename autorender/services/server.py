from dataclasses import dataclass


@dataclass
class ServerConfig:
    """
    Settings pushed by the server over the websocket connection.

    One instance is owned by the bot. The relay overwrites it whenever a
    config frame arrives and the render command reads it when deciding
    whether to accept a demo. A value of 0 means the server has not told
    us yet, in which case no size limit is enforced.
    """

    max_demo_file_size: int = 0

    def accepts(self, size: int) -> bool:
        return not self.max_demo_file_size or size <= self.max_demo_file_size
