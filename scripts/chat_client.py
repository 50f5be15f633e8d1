"""Terminal client for the relay. Run from the repo root: python -m scripts.chat_client"""
import argparse
import asyncio
import json
from urllib.parse import urlencode

import websockets
from pydantic import ValidationError

from app.models.message import Message, MessageType

QUIT_COMMAND = ":q!"

def format_message(raw: str) -> str:
    try:
        msg = Message.model_validate_json(raw)
    except ValidationError:
        return raw
    sender = msg.from_.nickname if msg.from_ else "?"
    stamp = msg.sent_at.astimezone().strftime("%H:%M:%S")
    if msg.type == MessageType.Notification and msg.is_typing is not None:
        return f"{stamp} [{msg.to}] {sender} {'is typing...' if msg.is_typing else 'stopped typing'}"
    return f"{stamp} [{msg.to}] {sender}: {msg.content}"

async def receive_messages(ws):
    try:
        async for raw in ws:
            print(format_message(raw))
    except websockets.ConnectionClosed:
        pass
    print(f"Connection closed ({ws.close_code}): {ws.close_reason or 'no reason given'}")

async def main(url: str, nickname: str, room: str):
    uri = f"{url}?{urlencode({'nickname': nickname, 'room': room})}"
    async with websockets.connect(uri) as ws:
        receiver = asyncio.create_task(receive_messages(ws))
        print(f"Connected as {nickname}@{room}. Type '{QUIT_COMMAND}' to close the connection.")
        while not receiver.done():
            line = await asyncio.to_thread(input)
            if line.strip().lower() == QUIT_COMMAND:
                break
            if not line.strip():
                continue
            try:
                await ws.send(json.dumps({"type": MessageType.Message.value, "content": line}))
            except websockets.ConnectionClosed:
                break
        await ws.close()
        await receiver

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Terminal client for the room relay")
    parser.add_argument("--url", default="ws://localhost:8000/api/ws")
    parser.add_argument("--nickname")
    parser.add_argument("--room")
    args = parser.parse_args()

    nickname = args.nickname or input("Enter your nickname: ").strip()
    room = args.room or input("Enter the room name: ").strip()
    asyncio.run(main(args.url, nickname, room))
