# sample_app.py

import asyncio
import logging

from pyLegoHub import EventSource, PROJECT_STOP_ALL, WeDo2, WeDo2Blocks
from pyLegoHub.blocks import MotorDirection, MotorID


async def wait_for_motor(hub):
    """
    Waits until the hub reports a motor on port A.
    """
    print("Waiting for motor detection...")
    while hub.motor(0) is None:
        await asyncio.sleep(1)


async def motor_routine(blocks):
    """
    Runs the motor one way for 2 seconds, then the other way at half power.
    """
    await blocks.motor_on_for(MotorID.A, 2)
    print("Ran motor on port A for 2 seconds.")

    await blocks.set_motor_direction(MotorID.A, MotorDirection.BACKWARD)
    await blocks.start_motor_power_for(MotorID.A, 50, 2)
    print("Ran motor on port A backwards at power 50.")


async def light_routine(blocks):
    """
    Cycles the hub light through a few colors and plays a note.
    """
    for color in ("red", "green", "blue"):
        print(f"Setting light to {color}...")
        await blocks.set_light_color(color)
        await asyncio.sleep(1)

    print("Playing A4 for half a second...")
    await blocks.play_note_for(69, 0.5)


async def main():
    logging.basicConfig(level=logging.INFO)

    runtime = EventSource()
    hub = WeDo2(runtime)
    blocks = WeDo2Blocks(hub)

    hubs = await hub.scan()
    if not hubs:
        print("LEGO hub not found. Exiting.")
        return

    print(f"Connecting to {hubs[0]['name']} ({hubs[0]['address']})...")
    if not await hub.connect(hubs[0]["address"]):
        print("Failed to connect to the LEGO hub.")
        return

    try:
        await light_routine(blocks)
        await wait_for_motor(hub)
        await motor_routine(blocks)
    finally:
        # Same path as the stop button of a block editor
        runtime.emit(PROJECT_STOP_ALL)
        await asyncio.sleep(0.1)
        await hub.disconnect()
        hub.close()


if __name__ == '__main__':
    asyncio.run(main())
