"""Peer-to-peer chat core: wire protocol, asyncio TCP peers, file transfer, chat sessions and routing."""

__version__ = "0.1.0"