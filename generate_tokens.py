import secrets
import string


def generate_secure_token(length=32):
    """Generate cryptographically secure token"""
    alphabet = string.ascii_letters + string.digits + '-_'
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def generate_multiple_tokens(count=3, length=32):
    """Generate one token per client app"""
    tokens = [generate_secure_token(length) for _ in range(count)]
    for i, token in enumerate(tokens, start=1):
        print(f"Token {i}: {token}")
    return tokens


if __name__ == "__main__":
    print("🔐 Generating Bearer tokens for the enhancer proxy...\n")

    tokens = generate_multiple_tokens(3, 32)

    print(f"\n💡 Usage:")
    print(f"1. Update Modal secret: modal secret create enhancer-auth --force VALID_TOKENS=\"{','.join(tokens)}\"")
    print(f"2. Send one of them as 'Authorization: Bearer <token>' to POST /api/enhance")
    print(f"3. Leave VALID_TOKENS empty to turn authentication off")
