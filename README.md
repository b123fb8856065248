# larvaos

A small 32-bit x86 teaching kernel written in pure Python. Each part of the
kernel is a plain Python object that you can drive and inspect:

- `larvaos.errors`: `Errno`, `KernelError` (a failed operation with an error
  number), `KernelPanic` and `panic()`.
- `larvaos.libc`: the kernel's small C library: `isupper`, `islower`,
  `isdigit`, `tolower`, `toupper`, `itoa`, `atoi`, `memcmp`, `strnlen`,
  `strncmp`, `strcasecmp`, `strncasecmp`.
- `larvaos.pathparser`: `is_valid_path` and `parse_path`, which splits an
  absolute path such as `/dir/file.txt` into `["dir", "file.txt"]`.
- `larvaos.heap`: a block-table heap allocator with 4 KiB blocks (`Heap`,
  `make_kernel_heap`).
- `larvaos.gdt`: global descriptor table encoding (`SegmentDescriptor`,
  `encode_gdt`, `default_gdt`).
- `larvaos.interrupts`: interrupt descriptor table encoding
  (`InterruptDescriptorTable`, `encode_idt_entry`).
- `larvaos.paging`: a 4 GiB address space that starts out mapped onto itself
  (`AddressSpace`, `PageFlags`, `is_aligned`, `align_address`,
  `page_indexes`).
- `larvaos.disk`: a sector disk backed by a byte image (`Disk`) and a byte
  stream over it (`DiskStream`).
- `larvaos.fstypes`: `SeekMode`, `FileMode`, `FileStat` and
  `file_mode_from_string`.
- `larvaos.fat16`: a read-only FAT16 driver (`Fat16FileSystem`,
  `DirectoryItem`, `Fat16File`).
- `larvaos.vfs`: a virtual file system with numbered file descriptors
  (`VirtualFileSystem` with `fopen`, `fread`, `fseek`, `fstat`, `fclose`) and
  a `File` object usable in a `with` block.
- `larvaos.task`, `larvaos.process`: the task list (`TaskList`, `Task`,
  `Registers`, `InterruptFrame`) and the process table (`ProcessTable`,
  `Process`) that loads a program binary from the disk.
- `larvaos.syscalls`: the system call table (`SyscallTable`, `SyscallArgs`,
  `SyscallEntry`, `sys_zero`).
- `larvaos.video`: an 80x40 VGA text screen (`TextScreen`, `VgaColor`)
  that also takes `<<` output.
- `larvaos.kernel`: the `Kernel` that ties these together, the
  `TaskStateSegment`, and the `larvaos` command.

Errors are raised as `larvaos.errors.KernelError` carrying an `Errno`;
unrecoverable faults raise `larvaos.errors.KernelPanic`.

## Installation

```
pip install .
```

## Booting a disk image

Given a FAT16 disk image that holds a program at its root:

```
larvaos disk.img
larvaos disk.img --program /other.bin
```

The command reads the image, boots a `Kernel` from it and prints the lines
the kernel wrote to its text screen: the welcome line and, when the program
(by default `/loop.bin`) was loaded, a line with its process id. If the image
cannot be read, or the kernel panics, it exits with status 1.

## Using the pieces

```python
from larvaos.heap import make_kernel_heap
from larvaos.video import TextScreen, VgaColor

heap = make_kernel_heap()
address = heap.malloc(5000)      # two 4 KiB blocks
heap.free(address)

screen = TextScreen(80, 40)
screen << VgaColor.GREEN << "Welcome." << "\n"
print(screen.row_text(0))        # "Welcome."
```

Reading a file through the virtual file system:

```python
from larvaos.kernel import Kernel
from larvaos.vfs import File

with open("disk.img", "rb") as fh:
    kernel = Kernel(fh.read())

kernel.boot("/loop.bin")
with File(kernel.vfs, "/hello.txt") as f:
    print(f.size(), f.read(f.size(), 1))
```

After `boot`, `Kernel.syscall(number, frame, stack)` dispatches a system call
for the current task: it saves the registers of the `InterruptFrame` into the
task and passes up to five words of `stack` to the handler.

## What it does not do

- It does not execute programs. A loaded process gets its binary, its heap
  memory, a task and page mappings, but no instructions are run; system calls
  are entered by calling `Kernel.syscall` directly.
- The file system is read-only: opening in write or append mode raises
  `KernelError` with `EROFS`, and seeking from the end of a file is not
  supported.
- Only system call 0 (`sys_zero`) has a handler; other numbers return `None`.
- There is no hardware access: the disk is an in-memory image and the screen
  is an in-memory grid of cells.

## Tests

```
pip install .[test]
pytest
```