import random
import sys

LOCAL = "10.0.0.1"
PEERS = ["10.0.0.2", "10.0.0.20", "10.0.0.30"]


def line(count: int) -> str:
    peer = random.choice(PEERS)
    eport = random.randint(32768, 60999)
    pk_o, by_o = random.randint(1, 20), random.randint(60, 20000)
    pk_r, by_r = random.randint(0, 20), random.randint(0, 20000)

    if count % 3 == 0:
        # peer connects to our web server
        o = f"src={peer} dst={LOCAL} sport={eport} dport=80"
        r = f"src={LOCAL} dst={peer} sport=80 dport={eport}"
    else:
        dport = random.choice([3306, 6379, 443])
        o = f"src={LOCAL} dst={peer} sport={eport} dport={dport}"
        r = f"src={peer} dst={LOCAL} sport={dport} dport={eport}"

    if count % 7 == 0:
        return f"tcp      6 117 SYN_SENT {o} packets={pk_o} bytes={by_o} [UNREPLIED] {r} packets=0 bytes=0 mark=0 use=1"
    return f"tcp      6 431999 ESTABLISHED {o} packets={pk_o} bytes={by_o} {r} packets={pk_r} bytes={by_r} [ASSURED] mark=0 use=1"


def main():
    """
    Print fake conntrack lines for a host at 10.0.0.1.

      python scripts/gen_conntrack_samples.py 200 | lsconntrack --stdin --pport 80
    """
    n = int(sys.argv[1]) if len(sys.argv) > 1 else 200
    for i in range(n):
        print(line(i))


if __name__ == "__main__":
    main()
