# Both scripts touch a single key so they stay atomic on a Redis
# cluster as well as a standalone server.

# KEYS[1] = lock name, ARGV[1] = session token, ARGV[2] = lease in ms.
# Returns "OK" when the token now owns the key, nil when another token does.
ACQUIRE_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    redis.call("SET", KEYS[1], ARGV[1], "PX", ARGV[2])
    return "OK"
else
    return redis.call("SET", KEYS[1], ARGV[1], "NX", "PX", ARGV[2])
end
"""

# KEYS[1] = lock name, ARGV[1] = session token.
# Returns 2 when the key is gone, 3 when a different token owns it,
# otherwise the DEL count.
RELEASE_SCRIPT = """
local current = redis.call("GET", KEYS[1])
if current == false then
    return 2
elseif current == ARGV[1] then
    return redis.call("DEL", KEYS[1])
else
    return 3
end
"""

RELEASE_DELETE_RACED = 0
RELEASE_DELETED = 1
RELEASE_ALREADY_GONE = 2
RELEASE_OWNED_BY_OTHER = 3

ACQUIRE_SUCCESS_REPLY = "OK"
