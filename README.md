# ps2hw

Register-level models of the hardware blocks around the PlayStation 2
Emotion Engine, written in plain Python with no dependencies.

## What is included

| Module          | Contents |
|-----------------|----------|
| `ps2hw.sif`     | `Sif`: the EE/IOP communication registers (MSCOM, SMCOM, MSFLG, SMFLG, CTRL, BD6) |
| `ps2hw.sio`     | `Sio`, `SioRegisters`: the EE serial port; bytes written to TXFIFO are collected into `Sio.lines` |
| `ps2hw.timer`   | `Timers`: the four EE timers (COUNT, MODE, COMP, and HOLD on T0 and T1) |
| `ps2hw.vu`      | `VectorUnit`: vector unit registers, flags and memories, with `reset()` |
| `ps2hw.ipu`     | `Ipu`: the image processing unit's CMD, CTRL, BP and TOP registers |
| `ps2hw.raster`  | `Vertex`, `Primitive`, `scissor_bounds`, and `draw_point`, `draw_triangle`, `draw_sprite` over a VRAM `bytearray` |
| `ps2hw.gs`      | `Gs`: privileged and drawing GS registers, 4 MiB of VRAM, host-to-local and local-to-local transfers, primitive buffering and `draw_buffered()` |
| `ps2hw.gif`     | `Gif`: GIF registers and GIFtag processing (PACKED and IMAGE formats) of DMA quadwords |
| `ps2hw.sched`   | `Scheduler`, `Event`: a cycle-based event queue with real-time throttling |

Accesses that have no meaning raise the module's error class:

- `SifError` on a read of an unknown SIF address (unknown writes are logged and dropped);
- `TimerError` on an unknown timer address or on HOLD of T2/T3;
- `GsError` on a write to an unknown privileged register or drawing register, and on an out-of-range VRAM blit;
- `GifError` on a GIFtag in the unsupported REGLIST format.

Other unknown reads return zero and are logged through the standard
`logging` module.

## Installing

```
pip install .
```

## Examples

Timers:

```python
from ps2hw.timer import Timers

timers = Timers()
timers.write32(0x10000000, 0x1234)      # T0_COUNT
assert timers.read32(0x10000000) == 0x1234
```

Serial output:

```python
from ps2hw.sio import Sio

sio = Sio()
for byte in b"hello\n":
    sio.write8(0x1000F180, byte)        # TXFIFO
assert sio.lines == ["hello"]
```

Feeding image data to the GS through the GIF:

```python
from ps2hw.gs import Gs
from ps2hw.gif import Gif

gs = Gs()
gs.write_internal_reg(0x50, 1 << 48)    # BITBLTBUF: destination width 64
gs.write_internal_reg(0x52, 4)          # TRXREG: 4 pixels wide
gs.write_internal_reg(0x53, 0)          # TRXDIR: host to local

gif = Gif()
tag = 1 | (1 << 15) | (2 << 58)         # NLOOP=1, EOP, IMAGE format
gif.write_dmac_data(gs, lambda addr: 0, tag, madr=0x1000)
gif.write_dmac_data(gs, lambda addr: 0, 0x1122334455667788, madr=0x1010)

assert gs.vram[:8] == (0x1122334455667788).to_bytes(8, "little")
assert gif.read32(0x10003000) & 1       # EOP sets CTRL bit 0
```

Scheduling events:

```python
from ps2hw.sched import Scheduler

sched = Scheduler()
sched.add_event(100, lambda machine: print("fired"))
sched.advance_cycles(100)
for callback in sched.drain_due_events():
    callback(None)
```

`Scheduler.run_timeslice(backend, machine)` and `run_main_loop(backend, machine)`
take a backend with a `run_for_cycles(cycles)` method and a machine object with
`gs` and `scheduler` attributes; `initialize_events()` schedules the recurring
draw-batch and vsync events that act on `machine.gs`.

## What this package does not do

It holds the hardware blocks only. There is no CPU or instruction
interpreter, no memory bus or DMA controller tying the blocks together, no
BIOS loading, no IOP, and no window or screen: `Gs.get_vram_data()` and
`Gs.get_framebuffer_data()` return raw RGBA bytes for a caller to show.
`VectorUnit` models registers and memories but does not execute
micro-instructions, and `Ipu` does not decode commands.

## Running the tests

```
pip install .[test]
pytest
```