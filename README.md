# shipbattle

A two-player battleship game that runs in a POSIX terminal. Players connect
to each other directly over TCP, or meet through a small relay server using a
shared five-letter key. Only the standard library is needed.

## Installing

```
pip install .
```

This installs two commands: `shipbattle` (the game) and `shipbattle-server`
(the relay server). To run the tests:

```
pip install ".[test]"
pytest
```

## Playing

```
shipbattle
```

The menus need a terminal of at least 81 columns by 21 rows; the battle
screen needs 208 by 52. On a smaller terminal the game shows how much room it
needs instead of the screen.

Menus are navigated with `j`/`s` (down), `k`/`w` (up) and Enter. On a page
with an input field, the field starts out in typing mode. Enter or Escape
stops typing; with the field row highlighted, Enter, `i` or `a` starts typing
again. Backspace deletes the last character.

### Direct connection

One player chooses **Direct connect → Start a game**, types a port and picks
**Create**, then waits for the other player. An empty port field listens on
port 65535. The other player chooses **Direct connect → Join a game**, types
the address as `host:port` and picks **Join**. The host must be a numeric
IPv4 address or `localhost`, for example `192.0.2.10:5000` or
`localhost:5000`; the field takes digits, lower-case letters, `.` and `:`, up
to 22 characters. The player who created the game is player 1.

### Through a relay server

Run the relay server somewhere both players can reach:

```
shipbattle-server 5000
```

It takes exactly one argument, the port; with any other number of arguments
it prints a usage line. A port that is not a number or is above 65535 is
rejected with exit status 1. It logs each connection, key and pairing to
standard output.

Both players choose **Use a relay server**, type the server's address and
pick **Join**, then type the same key of five lower-case letters and pick
**Send**. The server pairs the two connections that sent the same key, tells
the first one it is player 1 and the second one it is player 2, and then
forwards everything between them. A key that is not exactly five lower-case
letters is answered with `error: invalid connection` and the connection is
closed.

### Placing ships

Your own board is on the right. Move the cursor with `h`/`j`/`k`/`l` or
`a`/`s`/`w`/`d`. Press Enter on one end of a ship and Enter again on the
other end in the same row or column; a ship cannot overlap another one.
Escape cancels a started ship. Press Space when your fleet is ready (at least
one ship is needed). Each player then picks a random turn factor, and the two
factors decide who fires first.

### Battle

Move the cursor over the enemy board on the left and press Enter to fire
when it is your turn. Hits, misses and sunk ships are marked on the enemy
board. Bars at the top show both fleets' remaining hit points and whose turn
it is. When one fleet is gone, the result screen appears; press Enter to
leave. Ctrl-C quits at any time.

## Using it as a library

- `shipbattle.render` draws every screen as a `Buffer` of lines, and
  `frame(buffer, width, height)` centres one on a terminal of a given size.
- `shipbattle.keys.handle_key(status, key)` applies one key press to a
  `shipbattle.state.Status`.
- `shipbattle.protocol` parses addresses (`parse_address`) and applies peer
  messages (`handle_message`, `handle_fire`); malformed input raises
  `ProtocolError`.
- `shipbattle.server.RelayServer(port, host="")` is a context manager whose
  `serve_forever()` runs until `close()` is called.

## What it does not do

- A ship, once placed, cannot be moved or removed; pressing Enter on it does
  nothing.
- Addresses are IPv4 only; host names other than `localhost` are not looked
  up.
- The relay server keeps a player waiting for a partner until one arrives or
  the server is closed; it does not notice a waiting player who has left.