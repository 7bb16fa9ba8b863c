import os
import sys
import requests

CONTENT_TYPES = {
    '.csv': 'text/csv',
    '.json': 'application/json',
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}


def upload(path, test_id, token, api_base='http://127.0.0.1:8000/api'):
    url = f"{api_base}/tests/{test_id}/bulk-upload-questions/"
    content_type = CONTENT_TYPES.get(os.path.splitext(path)[1].lower(), 'application/octet-stream')
    with open(path, 'rb') as f:
        files = {'file': (os.path.basename(path), f, content_type)}
        r = requests.post(url, files=files, headers={'Authorization': f'Token {token}'}, timeout=60)
    print('status', r.status_code)
    try:
        print(r.json())
    except ValueError:
        print(r.text)
    return r.status_code == 201


if __name__ == '__main__':
    if len(sys.argv) < 3:
        print('Usage: python upload_questions.py path/to/questions.(csv|xlsx|json) TEST_ID [api_base]')
        print('Reads the admin API token from IELTS_API_TOKEN')
        sys.exit(1)
    token = os.environ.get('IELTS_API_TOKEN')
    if not token:
        print('IELTS_API_TOKEN is not set')
        sys.exit(1)
    api = sys.argv[3] if len(sys.argv) > 3 else 'http://127.0.0.1:8000/api'
    sys.exit(0 if upload(sys.argv[1], sys.argv[2], token, api) else 1)
