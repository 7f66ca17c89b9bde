
import asyncio
import sys
import websockets
import json

async def main(channel: str):
    async with websockets.connect('ws://localhost:3000/ws') as ws:
        await ws.send(json.dumps({'action': 'subscribe', 'channel': channel}))
        while True:
            msg = await ws.recv()
            print(msg)

if __name__ == '__main__':
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else 'barometer'))
